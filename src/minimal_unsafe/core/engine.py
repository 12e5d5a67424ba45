"""
Lint Engine.

Wires a host front-end, the safety oracle and the traversal together and
packages the outcome as an `AnalysisResult`. The engine keeps no state between
runs, so analyzing the same input twice yields the same findings.
"""

import logging
from pathlib import Path
from typing import List, Optional

from minimal_unsafe.analysis.traversal import UnsafeBlockWalker
from minimal_unsafe.config import RuntimeConfig
from minimal_unsafe.core.errors import AnalysisError
from minimal_unsafe.core.finding import AnalysisResult, Finding
from minimal_unsafe.core.hir import AnalysisUnit
from minimal_unsafe.core.oracle import SafetyOracle, SemanticModel
from minimal_unsafe.frontends import load_file
from minimal_unsafe.frontends.python import load_python

logger = logging.getLogger(__name__)


class LintEngine:
  """
  Runs the minimal unsafe block check over units.
  """

  def __init__(self, config: Optional[RuntimeConfig] = None):
    """
    Initializes the engine.

    Args:
        config: Runtime configuration. Defaults to `RuntimeConfig()`.
    """
    self.config = config or RuntimeConfig()

  def run_unit(self, unit: AnalysisUnit, semantics: SemanticModel) -> AnalysisResult:
    """
    Analyzes an already lowered unit.

    Args:
        unit: The lowered tree.
        semantics: The host resolver for the unit.

    Returns:
        AnalysisResult: Findings in traversal order.
    """
    result = AnalysisResult(path=unit.path)
    if not self.config.enabled:
      logger.debug(f"Check disabled, skipping {unit.path}")
      return result

    findings: List[Finding] = []
    walker = UnsafeBlockWalker(SafetyOracle(semantics), findings.append)
    walker.walk_unit(unit)

    result.findings = findings
    result.blocks_checked = walker.blocks_checked
    result.unhandled = dict(sorted(walker.unhandled.items()))
    return result

  def run(self, code: str, path: str = "<string>") -> AnalysisResult:
    """
    Analyzes Python source code.

    Args:
        code: The source text.
        path: Name used in finding locations.

    Returns:
        AnalysisResult: `success` is False and `errors` is filled if the code does not parse.
    """
    try:
      unit, semantics = load_python(code, path, self.config)
    except AnalysisError as e:
      return AnalysisResult(path=path, success=False, errors=[str(e)])
    return self.run_unit(unit, semantics)

  def run_file(self, path: Path) -> AnalysisResult:
    """
    Analyzes a `.py` source or a `.json` HIR export.

    Args:
        path: The file to analyze.

    Returns:
        AnalysisResult: Host errors are reported in the result, not raised.
    """
    try:
      unit, semantics = load_file(path, self.config)
    except AnalysisError as e:
      return AnalysisResult(path=str(path), success=False, errors=[str(e)])
    return self.run_unit(unit, semantics)
