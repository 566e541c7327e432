#!/usr/bin/env python3
"""
Entry point for running plugin_modernizer as a module.
"""

import sys

from plugin_modernizer.cli import main

if __name__ == '__main__':
    sys.exit(main())
