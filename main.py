"""
Run a CHIP-8 ROM: python main.py [options] ROM
"""

import sys

from octavm.cli import main

if __name__ == "__main__":
    sys.exit(main())
