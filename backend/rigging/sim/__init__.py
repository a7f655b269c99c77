"""Block-and-tackle rigging core.

This module provides:
- System schema (schema.py) and connection-point addressing (points.py)
- Rope chain detection (chains.py)
- Rigging validation (validation.py)
- Static mechanical solver (solver.py)
- Display formatting (display.py) and persisted scenarios (scenarios.py)
"""

from rigging.sim.schema import System, Rope, Pulley, RopeChain, PulleyWrap
from rigging.sim.chains import annotate_chains, detect_rope_chains, get_pulley_wraps
from rigging.sim.validation import ValidationResult, validate_system, format_validation_report
from rigging.sim.solver import SolverResult, PulleySolver, solve
from rigging.sim.display import DisplayResults, format_results_for_display
from rigging.sim.scenarios import SystemImportError, export_system, import_system, load_scenarios

__all__ = [
    # Schema
    "System",
    "Rope",
    "Pulley",
    "RopeChain",
    "PulleyWrap",
    # Chains
    "detect_rope_chains",
    "annotate_chains",
    "get_pulley_wraps",
    # Validation
    "ValidationResult",
    "validate_system",
    "format_validation_report",
    # Solver
    "SolverResult",
    "PulleySolver",
    "solve",
    # Display
    "DisplayResults",
    "format_results_for_display",
    # Persistence
    "SystemImportError",
    "export_system",
    "import_system",
    "load_scenarios",
]
