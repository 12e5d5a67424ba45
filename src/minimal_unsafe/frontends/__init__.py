"""
Host Front-ends.

Each host turns its own input into an `AnalysisUnit` plus a `SemanticModel`.

Modules:
    - ``python``: Python sources via LibCST.
    - ``hir_json``: JSON exports of another host's typed tree.
"""

from pathlib import Path
from typing import Optional, Tuple

from minimal_unsafe.config import RuntimeConfig
from minimal_unsafe.core.errors import AnalysisError
from minimal_unsafe.core.hir import AnalysisUnit
from minimal_unsafe.core.oracle import SemanticModel
from minimal_unsafe.frontends.hir_json import load_hir
from minimal_unsafe.frontends.python import load_python

SUPPORTED_SUFFIXES = (".py", ".json")


def load_file(path: Path, config: Optional[RuntimeConfig] = None) -> Tuple[AnalysisUnit, SemanticModel]:
  """
  Reads a file and lowers it with the host matching its suffix.

  Args:
      path (Path): A `.py` source or a `.json` HIR export.
      config (RuntimeConfig, optional): Host settings.

  Returns:
      Tuple[AnalysisUnit, SemanticModel]: The lowered unit and its resolver.

  Raises:
      AnalysisError: If the file cannot be read, has an unsupported suffix or fails to lower.
  """
  if path.suffix not in SUPPORTED_SUFFIXES:
    raise AnalysisError(str(path), f"unsupported file type '{path.suffix}'")

  try:
    text = path.read_text(encoding="utf-8")
  except (OSError, UnicodeDecodeError) as e:
    raise AnalysisError(str(path), f"cannot read file: {e}") from e

  if path.suffix == ".json":
    return load_hir(text, str(path))
  return load_python(text, str(path), config)
