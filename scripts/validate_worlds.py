#!/usr/bin/env python3
"""
Validate every test world and its fixtures.

Usage:
    python scripts/validate_worlds.py [--detailed] [--debug]

Exits 1 when any world has errors (or validation itself crashes), 0 otherwise.
Warnings are printed but never fail the run.
"""

import argparse
import asyncio
import logging
import sys
import traceback

# Add project root to path
sys.path.insert(0, ".")

from testworlds.services.validator import WorldValidator


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate test worlds and their fixtures.")
    parser.add_argument("--detailed", "--report", action="store_true", help="print the per-world report")
    parser.add_argument("--debug", action="store_true", help="verbose logging and stack traces")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    validator = WorldValidator()
    report = await validator.validate_all()

    print("VALIDATION SUMMARY:")
    print(f"   Total worlds:    {report.total_worlds}")
    print(f"   Valid worlds:    {report.valid_worlds}")
    print(f"   Invalid worlds:  {report.invalid_worlds}")
    print(f"   Total errors:    {report.total_errors}")
    print(f"   Total warnings:  {report.total_warnings}")
    print(f"   Validation time: {report.total_ms}ms")

    if args.detailed:
        print()
        print(validator.render_report(report))

    if not report.ok:
        print("\nVALIDATION FAILED:")
        for result in report.results:
            if result.errors:
                print(f"   World {result.world_id}:")
                for error in result.errors:
                    print(f"     - {error.message}")
        return 1

    if report.total_warnings:
        print("\nWARNINGS:")
        for result in report.results:
            if result.warnings:
                print(f"   World {result.world_id}:")
                for warning in result.warnings:
                    print(f"     - {warning.message}")

    print("\nAll worlds are ready for testing.")
    return 0


def main() -> None:
    args = parse_args(sys.argv[1:])
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING)
    try:
        code = asyncio.run(run(args))
    except Exception as e:
        print(f"VALIDATION ERROR: {e}", file=sys.stderr)
        if args.debug:
            traceback.print_exc()
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
