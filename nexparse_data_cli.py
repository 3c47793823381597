#!/usr/bin/env python3
"""CLI utility for managing nexparse data files from a source checkout"""

import sys

from src.nexparse.data_cli import main

if __name__ == "__main__":
    sys.exit(main())
