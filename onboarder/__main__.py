#!/usr/bin/env python3
"""
Enable running onboarder via: python -m onboarder

Usage:
    python -m onboarder --network anvil --operator-type validator
"""

import sys

from onboarder.cli import main

if __name__ == "__main__":
    sys.exit(main())
