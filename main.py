"""
Profile Export Entry Point

Run with: profile-export
Or: python main.py
"""

import sys

from profile_export.main import main

if __name__ == "__main__":
    sys.exit(main())
