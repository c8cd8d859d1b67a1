"""
Entry point for running device_locator as a module.

This allows the package to be executed with: python -m device_locator
"""

import sys

from .main import main

if __name__ == "__main__":
    sys.exit(main())
