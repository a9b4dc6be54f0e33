#!/usr/bin/env python3
"""
Convenient entry point for the parley CLI.

Usage:
    python run_cli.py [-m MODEL] [-s SESSION.jsonl] [-t TRANSCRIPT.txt] [--debug]
"""
import sys
from pathlib import Path

# Add project root to Python path
root_dir = Path(__file__).parent
sys.path.insert(0, str(root_dir))

from parley.clients.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
