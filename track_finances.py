#!/usr/bin/env python3
"""Transaction Categorization and Spending Dashboard Tool.

This is the main entry point script for the finance tracker.
It wraps the package CLI for convenient execution.

Usage:
    python track_finances.py dashboard --start 2024-01-01 --end 2024-01-31

For full documentation and options:
    python track_finances.py --help
"""

import sys
from pathlib import Path

# Add src to path for development installs
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from finance_tracker.cli import main

if __name__ == "__main__":
    sys.exit(main())
