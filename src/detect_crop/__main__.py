"""
Entry point for running detect-crop as a module.

Usage:
    python -m detect_crop input_URI [output_URI] [crop_URI]
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
