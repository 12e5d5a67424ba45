"""
Entry point for module execution (``python -m minimal_unsafe``).

This module delegates execution to the CLI handler in ``minimal_unsafe.cli.__main__``.
"""

import sys
from minimal_unsafe.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
