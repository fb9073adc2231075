"""Entry point for running as module: python -m zkbridge"""

import sys

# Load .env file before importing anything else
from dotenv import load_dotenv
load_dotenv()

from zkbridge.cli import main

if __name__ == "__main__":
    sys.exit(main())
