#!/usr/bin/env python3
"""
dbgraph launcher for running from a source checkout.

Usage:
    python bin/dbgraph.py analyze snapshot.json
    python bin/dbgraph.py impact snapshot.json public.users
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dbgraph.cli import main


if __name__ == "__main__":
    sys.exit(main())
