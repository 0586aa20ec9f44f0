#!/usr/bin/env python3
"""
Entry point for running parity as a module: python -m parity
"""

import sys


if __name__ == '__main__':
    from parity.main import main

    sys.exit(main())
