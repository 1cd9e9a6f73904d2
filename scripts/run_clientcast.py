#!/usr/bin/env python3
"""
Run the clientcast pipeline from a config file.

Examples:
    python scripts/run_clientcast.py examples/config.example.yaml
    python scripts/run_clientcast.py config.yaml --send --start-index 1200
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from clientcast.cli import main

if __name__ == "__main__":
    sys.exit(main())
