"""validate-scenarios: validate (and optionally solve) every scenario file."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rigging.logging_utils import get_logger
from rigging.models.settings import get_settings
from rigging.sim.display import format_results_for_display, format_results_text
from rigging.sim.scenarios import SystemImportError, load_system_file, scenario_name
from rigging.sim.solver import PulleySolver
from rigging.sim.validation import format_validation_report, validate_system


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    ap = argparse.ArgumentParser(prog="validate-scenarios", description="Validate rigging scenario files.")
    ap.add_argument("directory", nargs="?", type=Path, default=settings.SCENARIOS_DIR)
    ap.add_argument("--solve", action="store_true", help="also print the solved summary of each valid scenario")
    ap.add_argument("--load", type=float, default=settings.DEFAULT_LOAD_FORCE_N, help="load force in Newtons")
    args = ap.parse_args(argv)

    log = get_logger("rigging", settings.LOG_LEVEL)

    if not args.directory.is_dir():
        log.error("Scenarios directory not found: %s", args.directory)
        return 1
    files = sorted(args.directory.glob("*.json"))

    print("=== VALIDATING ALL SCENARIOS ===\n")

    all_valid = True
    for path in files:
        print(f"\n--- {path.name} ---")
        try:
            system = load_system_file(path)
        except SystemImportError as e:
            print(f"  ✗ {e}\n")
            all_valid = False
            continue

        result = validate_system(system)
        print(format_validation_report(result))
        if not result.valid:
            all_valid = False
            continue

        if args.solve:
            try:
                solved = PulleySolver(system).solve(args.load)
            except ValueError as e:
                log.error("%s: %s", path.name, e)
                return 2
            if solved.success:
                display = format_results_for_display(solved, system, scenario_name(path.stem), args.load)
                print(format_results_text(display))
            else:
                print("\n".join(f"  ✗ {err}" for err in solved.errors or []) + "\n")

    print("\n=== SUMMARY ===")
    print(f"Overall: {'✓ ALL SCENARIOS VALID' if all_valid else '✗ SOME SCENARIOS INVALID'}")
    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
