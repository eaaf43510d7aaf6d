"""
`python -m kirkman_engine [flags]` runs the schedule solver CLI.

See orchestrator.build_parser() for the flags.
"""

from __future__ import annotations

import sys

from .orchestrator import main

if __name__ == "__main__":
    sys.exit(main())
