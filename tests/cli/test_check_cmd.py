"""
Tests for the `check` command.

Verifies:
1. Exit codes for clean, dirty and missing inputs.
2. `--json` output structure.
3. Directory expansion skips hidden and virtualenv folders.
4. CLI flags reach the configuration.
"""

import json
from io import StringIO
from pathlib import Path
from unittest.mock import patch

from rich.console import Console

from minimal_unsafe.cli.__main__ import main
from minimal_unsafe.cli.handlers.check import collect_files, handle_check
from minimal_unsafe.config import RuntimeConfig
from minimal_unsafe.utils.console import set_console

DIRTY = """
from minimal_unsafe.markers import unsafe

def safe_fn(x):
  return x

with unsafe():
  safe_fn(0)
"""

CLEAN = """
from minimal_unsafe.markers import unsafe

@unsafe
def unsafe_fn(x):
  return x

with unsafe():
  unsafe_fn(0)
"""


def _capture() -> StringIO:
  buf = StringIO()
  set_console(Console(file=buf, width=200, force_terminal=False))
  return buf


def test_clean_file_exits_zero(tmp_path):
  f = tmp_path / "clean.py"
  f.write_text(CLEAN, encoding="utf-8")
  buf = _capture()

  assert main(["check", str(f)]) == 0
  assert "All unsafe blocks are minimal" in buf.getvalue()


def test_dirty_file_exits_one(tmp_path):
  f = tmp_path / "dirty.py"
  f.write_text(DIRTY, encoding="utf-8")
  buf = _capture()

  assert main(["check", str(f)]) == 1
  output = buf.getvalue()
  assert "covers_safe_call" in output
  assert "Unsafe blocks checked: 1" in output


def test_json_output(tmp_path, capsys):
  """
  Scenario: `check --json` on a file with one finding.
  Expectation: A JSON document listing the finding; no log lines mixed in.
  """
  f = tmp_path / "dirty.py"
  f.write_text(DIRTY, encoding="utf-8")

  with patch("minimal_unsafe.cli.handlers.check.log_info") as mock_log:
    ret = main(["check", str(f), "--json"])

  assert ret == 1
  mock_log.assert_not_called()
  payload = json.loads(capsys.readouterr().out)
  assert payload["errors"] == []
  assert payload["findings"] == [
    {
      "path": str(f),
      "line": 7,
      "column": 0,
      "reason": "covers_safe_call",
      "message": "this unsafe block is not minimal as it covers unnecessarily a safe call",
    }
  ]


def test_missing_path(tmp_path):
  buf = _capture()

  assert main(["check", str(tmp_path / "nope.py")]) == 1
  assert "Path not found" in buf.getvalue()


def test_syntax_error_is_an_error(tmp_path):
  f = tmp_path / "broken.py"
  f.write_text("with unsafe(:\n", encoding="utf-8")
  buf = _capture()

  assert main(["check", str(f)]) == 1
  assert "syntax error" in buf.getvalue()


def test_disable_flag(tmp_path, capsys):
  f = tmp_path / "dirty.py"
  f.write_text(DIRTY, encoding="utf-8")

  assert main(["check", str(f), "--disable", "--json"]) == 0
  assert json.loads(capsys.readouterr().out) == {"findings": [], "errors": []}


def test_flags_reach_config(tmp_path):
  with patch("minimal_unsafe.cli.handlers.handle_check", return_value=0) as mock_handle:
    assert main(["check", str(tmp_path), "--marker", "trusted", "--marker", "unsafe", "--json"]) == 0

  paths, config = mock_handle.call_args.args
  assert paths == [tmp_path]
  assert config.unsafe_markers == ["trusted", "unsafe"]
  assert config.enabled
  assert mock_handle.call_args.kwargs == {"json_mode": True, "debug": False}


def test_debug_shows_coverage(tmp_path):
  """
  Scenario: `--debug` on a block ending in an expression without a rule.
  Expectation: The coverage table names the node type.
  """
  f = tmp_path / "opaque.py"
  f.write_text("with unsafe():\n  obj.attr = 1\n", encoding="utf-8")
  buf = _capture()

  ret = handle_check([f], RuntimeConfig(), debug=True)

  assert ret == 0
  output = buf.getvalue()
  assert "Tail expressions without a rule (debug)" in output
  assert "Node" in output
  assert "Assign" in output


def test_collect_files_skips_hidden_and_venv(tmp_path):
  (tmp_path / "pkg").mkdir()
  (tmp_path / "pkg" / "a.py").write_text("", encoding="utf-8")
  (tmp_path / "pkg" / "b.json").write_text("{}", encoding="utf-8")
  (tmp_path / "pkg" / "notes.txt").write_text("", encoding="utf-8")
  for skipped in (".git", ".venv", "venv", "__pycache__"):
    (tmp_path / skipped).mkdir()
    (tmp_path / skipped / "c.py").write_text("", encoding="utf-8")

  files = collect_files(tmp_path)

  assert [p.relative_to(tmp_path) for p in files] == [Path("pkg/a.py"), Path("pkg/b.json")]


def test_collect_files_single_file(tmp_path):
  f = tmp_path / "x.txt"
  f.write_text("", encoding="utf-8")
  assert collect_files(f) == [f]
