#!/usr/bin/env python3
"""
API entrypoint - serves the question catalog HTTP API with uvicorn.
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn

from question_bank.core.config import API_HOST, API_PORT, debug_enabled, validate_config


def main():
    issues = validate_config()
    if issues:
        for issue in issues:
            print(f"❌ {issue}")
        return 1

    print(f"🚀 Question catalog API on http://{API_HOST}:{API_PORT}")
    uvicorn.run(
        "question_bank.api.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=debug_enabled(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
