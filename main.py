#!/usr/bin/env python

"""
Chronose - Main Entry Point

Employee time tracking: check in/out of work sessions, log work and leave
entries, and review hours per week or month.

Usage:
    python main.py [status|check-in|check-out|week|month|entries|log-work|log-leave|delete] ...

Requirements:
    - Python 3.10+
    - See pyproject.toml for dependencies
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from chronose.ui import main


if __name__ == "__main__":
    sys.exit(main())
