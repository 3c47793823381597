#!/usr/bin/env python3
"""
nexparse CLI
Run the NEXUS reader from a source checkout: python nexparse_cli.py file.nex
"""

from src.nexparse.cli import main

if __name__ == "__main__":
    exit(main())
