#!/usr/bin/env python3
"""
Import questions from a text file (one "#418 WFD ..." / "RA001 ..." per line).
"""

import argparse
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from question_bank.core.bulk import import_records
from question_bank.core.parser import parse_lines, records_to_json


def main(argv=None):
    parser = argparse.ArgumentParser(description="Import questions from pasted text")
    parser.add_argument("path", type=Path, help="Text file, one question per line")
    parser.add_argument("--dry-run", action="store_true", help="Print the parsed JSON without importing")
    parser.add_argument("--stop-on-error", action="store_true", help="Abort the remaining items after a failure")
    args = parser.parse_args(argv)

    if not args.path.exists():
        print(f"ERROR: File not found: {args.path}")
        return 1

    outcomes = list(parse_lines(args.path.read_text(encoding="utf-8")))
    records = [o.record for o in outcomes if o.matched]
    dropped = [o.line_no for o in outcomes if not o.matched]

    print(f"Parsed {len(records)} question(s); ignored {len(dropped)} line(s)")
    if dropped:
        print(f"Ignored lines: {', '.join(str(n) for n in dropped)}")

    if args.dry_run:
        print(records_to_json(records))
        return 0

    if not records:
        return 1

    def show_progress(completed, total):
        print(f"\r{completed}/{total}", end="", flush=True)

    report = import_records(records, stop_on_error=args.stop_on_error or None, progress=show_progress)
    print()
    print(report.message)
    for outcome in report.outcomes:
        if outcome.reason:
            print(f"  [{outcome.status.value}] item {outcome.index} {outcome.identifier}: {outcome.reason}")

    return 0 if report.failed == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
