"""
Main entry point for the regionizer.

Allows running: python -m regionizer <image_path>
"""

import sys
from regionizer.cli import main

if __name__ == "__main__":
    sys.exit(main())
