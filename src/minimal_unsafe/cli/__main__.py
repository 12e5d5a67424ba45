"""
Main Entry Point for minimal-unsafe CLI.

This module handles argument parsing and dispatches to the command handlers
defined in `minimal_unsafe.cli.handlers`.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from minimal_unsafe import __version__
from minimal_unsafe.cli import handlers
from minimal_unsafe.config import RuntimeConfig
from minimal_unsafe.utils.console import enable_debug


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Parses arguments via argparse and calls the appropriate handler function.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="minimal-unsafe: flag unsafe blocks that cover more than they need")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: CHECK ---
  cmd_check = subparsers.add_parser("check", help="Check Python files or HIR exports for non-minimal unsafe blocks")
  cmd_check.add_argument("paths", nargs="+", type=Path, help="Input files or directories")
  cmd_check.add_argument("--json", action="store_true", help="Print findings as JSON")
  cmd_check.add_argument(
    "--disable",
    action="store_true",
    default=None,
    help="Turn the check off (Overrides config)",
  )
  cmd_check.add_argument(
    "--marker",
    action="append",
    default=None,
    help="Name of the unsafe context manager / decorator (repeatable, default: from toml or 'unsafe')",
  )
  cmd_check.add_argument("--debug", action="store_true", help="Show internal traces and rule coverage")

  # --- Command: EXPLAIN ---
  subparsers.add_parser("explain", help="Describe the minimal_unsafe_block lint")

  args = parser.parse_args(argv)

  if args.command == "check":
    if args.debug:
      enable_debug()
    config = RuntimeConfig.load(
      enabled=False if args.disable else None,
      unsafe_markers=args.marker,
    )
    return handlers.handle_check(args.paths, config, json_mode=args.json, debug=args.debug)

  if args.command == "explain":
    return handlers.handle_explain()

  return 1


if __name__ == "__main__":
  sys.exit(main())
