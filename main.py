#!/usr/bin/env python3
"""
Bulk Rename Tool - Main Entry

Usage:
    python main.py                                  # Interactive mode
    python main.py apply --pair a.txt b.txt ...     # Execute renames
    python main.py apply --from-file renames.tsv    # Execute renames from a mapping file
    python main.py undo <journal.json>              # Undo a previous run
    python main.py check --from-file renames.tsv    # Check that every source exists
"""

import sys
from pathlib import Path

# Ensure the current directory is in the Python path
sys.path.insert(0, str(Path(__file__).parent))


def main():
    """Main entry point"""
    from rename_cli import main as cli_main
    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
