#!/usr/bin/env python3
"""
Allow running pocketchat as a module: python -m pocketchat

This enables the following usage:
    python -m pocketchat [OPTIONS] COMMAND

Which is equivalent to:
    pocketchat [OPTIONS] COMMAND
"""

from pocketchat.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
