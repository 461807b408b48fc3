#!/usr/bin/env python3
"""
Export questions to CSV (same format as the API download).
"""

import argparse
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from question_bank.core.catalog import list_questions
from question_bank.core.export import EXPORT_VIEWS, export_view
from question_bank.core.schema import Category


def main(argv=None):
    parser = argparse.ArgumentParser(description="Export questions to CSV")
    parser.add_argument("--category", choices=[c.value for c in Category], help="Only this category")
    parser.add_argument("--search", default="", help="Only questions whose number or content contains this text")
    parser.add_argument("--view", choices=sorted(EXPORT_VIEWS), help="Export view (file name and BOM policy)")
    parser.add_argument("--out-dir", type=Path, default=Path("."), help="Directory for the CSV file")
    args = parser.parse_args(argv)

    records = list_questions(args.category, args.search)
    default_view = "search" if args.search else (args.category.lower() if args.category else "all")
    export = export_view(records, args.view or default_view)

    args.out_dir.mkdir(parents=True, exist_ok=True)
    target = args.out_dir / export.filename
    target.write_bytes(export.to_bytes())
    print(f"✓ Wrote {len(records)} question(s) to {target}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
