#!/usr/bin/env python3
"""
Launch script for backup-drive, loading .env automatically (LOG_LEVEL, LOG_FORMAT)
"""

import sys

from dotenv import load_dotenv

# Load .env BEFORE any other import
load_dotenv()

from backup.src.main import main

if __name__ == "__main__":
    sys.exit(main())
