#!/usr/bin/env python3
"""
Console entrypoint - launches the Textual operator console.
"""

import sys
from pathlib import Path

# Load environment variables from .env file first
import dotenv
dotenv.load_dotenv()

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


def main():
    from question_bank.core.config import validate_config
    from question_bank.tui.app import run

    issues = validate_config()
    if issues:
        for issue in issues:
            print(f"❌ {issue}")
        return 1

    run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
