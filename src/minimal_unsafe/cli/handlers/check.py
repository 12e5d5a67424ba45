"""
Check Command Handler.

Runs the minimal unsafe block check over files and renders the findings, as a
Rich table or as JSON.
"""

import json
from collections import Counter
from pathlib import Path
from typing import List

from rich.table import Table

from minimal_unsafe.config import RuntimeConfig
from minimal_unsafe.core.engine import LintEngine
from minimal_unsafe.core.finding import AnalysisResult
from minimal_unsafe.frontends import SUPPORTED_SUFFIXES
from minimal_unsafe.utils.console import console, log_error, log_info, log_success, log_warning

_SKIPPED_DIRS = {"venv", ".venv", "__pycache__", "node_modules"}


def collect_files(path: Path) -> List[Path]:
  """
  Expands a path into the files to analyze.

  Args:
      path: A file, or a directory searched recursively.

  Returns:
      Sorted list of `.py` and `.json` files, skipping hidden and virtualenv directories.
  """
  if path.is_file():
    return [path]

  files = []
  for candidate in path.rglob("*"):
    if not candidate.is_file() or candidate.suffix not in SUPPORTED_SUFFIXES:
      continue
    parts = candidate.relative_to(path).parts[:-1]
    if any(p.startswith(".") or p in _SKIPPED_DIRS for p in parts):
      continue
    files.append(candidate)
  return sorted(files)


def handle_check(paths: List[Path], config: RuntimeConfig, json_mode: bool = False, debug: bool = False) -> int:
  """
  Checks files for non-minimal unsafe blocks.

  Args:
      paths: Input files or directories.
      config: Runtime configuration (the `enabled` toggle included).
      json_mode: If True, output JSON to stdout and suppress Rich logs.
      debug: If True, also report tail expressions no rule covered.

  Returns:
      int: Exit code (0 if clean, 1 if any finding or error).
  """
  files: List[Path] = []
  missing = False
  for path in paths:
    if not path.exists():
      log_error(f"Path not found: {path}")
      missing = True
      continue
    files.extend(collect_files(path))

  if not config.enabled:
    if not json_mode:
      log_warning("The minimal_unsafe_block check is disabled by configuration.")
    else:
      print(json.dumps({"findings": [], "errors": []}, indent=2))
    return 1 if missing else 0

  if not json_mode:
    log_info(f"Checking {len(files)} file(s)...")

  engine = LintEngine(config=config)
  results: List[AnalysisResult] = []
  for f in files:
    result = engine.run_file(f)
    for error in result.errors:
      log_error(error)
    results.append(result)

  findings = [finding for result in results for finding in result.findings]
  errors = [error for result in results for error in result.errors]

  if json_mode:
    payload = {
      "findings": [
        {
          "path": fd.location.path,
          "line": fd.location.line,
          "column": fd.location.column,
          "reason": fd.reason.value,
          "message": fd.message,
        }
        for fd in findings
      ],
      "errors": errors,
    }
    print(json.dumps(payload, indent=2))
    return 1 if findings or errors or missing else 0

  if findings:
    table = Table(title="Non-minimal unsafe blocks")
    table.add_column("Location", style="cyan")
    table.add_column("Reason", style="yellow")
    table.add_column("Message")
    for fd in findings:
      table.add_row(str(fd.location), fd.reason.value, fd.message)
    console.print(table)

  if debug:
    _print_coverage(results)

  checked = sum(r.blocks_checked for r in results)
  console.print(f"[bold]Unsafe blocks checked:[/bold] {checked}")
  console.print(f"Findings:              [red]{len(findings)}[/red]")
  console.print(f"Errors:                [red]{len(errors)}[/red]")

  if not findings and not errors and not missing:
    log_success("All unsafe blocks are minimal.")
    return 0
  return 1


def _print_coverage(results: List[AnalysisResult]) -> None:
  unhandled: Counter = Counter()
  for result in results:
    unhandled.update(result.unhandled)
  if not unhandled:
    return

  table = Table(title="Tail expressions without a rule (debug)", expand=True)
  table.add_column("Node", style="magenta")
  table.add_column("Count", justify="right")
  for label, count in sorted(unhandled.items()):
    table.add_row(label, str(count))
  console.print(table)
