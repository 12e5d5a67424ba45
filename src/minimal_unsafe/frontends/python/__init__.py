"""
Python Host.

Parses Python sources with LibCST, lowers them into the analyzer's tree and
provides the matching semantic model.

Modules:
    - ``lowering``: `with unsafe():` blocks and statement bodies to `Block`/`Expr`.
    - ``symbols``: Scope-aware resolution of call and method call targets.
    - ``scanners``: Name flattening helpers.
"""

from typing import Optional, Tuple

import libcst as cst
from libcst.metadata import MetadataWrapper, PositionProvider

from minimal_unsafe.config import RuntimeConfig
from minimal_unsafe.core.errors import AnalysisError
from minimal_unsafe.core.hir import AnalysisUnit
from minimal_unsafe.frontends.python.lowering import PythonLowering
from minimal_unsafe.frontends.python.symbols import PythonSemanticModel


def load_python(
  code: str,
  path: str = "<string>",
  config: Optional[RuntimeConfig] = None,
) -> Tuple[AnalysisUnit, PythonSemanticModel]:
  """
  Parses and lowers Python source code.

  Args:
      code (str): The source text.
      path (str): Name used in finding locations.
      config (RuntimeConfig, optional): Marker and decorator settings.

  Returns:
      Tuple[AnalysisUnit, PythonSemanticModel]: The lowered unit and its resolver.

  Raises:
      AnalysisError: If the source does not parse.
  """
  config = config or RuntimeConfig()
  try:
    wrapper = MetadataWrapper(cst.parse_module(code))
  except cst.ParserSyntaxError as e:
    raise AnalysisError(path, f"syntax error: {e.message} (line {e.raw_line}, column {e.raw_column})") from e

  # MetadataWrapper works on a copy; both passes must share its module.
  module = wrapper.module
  positions = wrapper.resolve(PositionProvider)

  semantics = PythonSemanticModel(module, config)
  unit = PythonLowering(path, positions, config, semantics).lower_module(module)
  return unit, semantics


__all__ = ["load_python", "PythonLowering", "PythonSemanticModel"]
