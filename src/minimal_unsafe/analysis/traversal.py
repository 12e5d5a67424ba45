"""
AST Traversal Engine.

Walks every expression of an `AnalysisUnit` and hands each user-authored unsafe
block to the minimality classifier. Compiler-synthesized unsafe blocks are never
classified, but their contents are still walked so nested authored blocks are
checked on their own.
"""

from collections import Counter
from typing import Callable, List

from minimal_unsafe.analysis.minimality import classify_unsafe_block
from minimal_unsafe.core.finding import Finding
from minimal_unsafe.core.hir import AnalysisUnit, Expr
from minimal_unsafe.core.oracle import SafetyOracle
from minimal_unsafe.enums import ExprKind

Reporter = Callable[[Finding], None]


class UnsafeBlockWalker:
  """
  Iterative pre-order walk over a lowered tree.

  Attributes:
      blocks_checked (int): User-authored unsafe blocks classified so far.
      unhandled (Counter): Host labels of tails that fell back to "no finding".
  """

  def __init__(self, oracle: SafetyOracle, report: Reporter):
    """
    Initializes the walker.

    Args:
        oracle: Safety oracle passed through to the classifier.
        report: Receives every finding, in traversal order.
    """
    self.oracle = oracle
    self.report = report
    self.blocks_checked = 0
    self.unhandled: Counter = Counter()

  def walk_unit(self, unit: AnalysisUnit) -> None:
    """Walks the whole unit."""
    self.walk(unit.root)

  def walk(self, root: Expr) -> None:
    """
    Walks `root` and all of its descendants in source order.

    Args:
        root: The expression to start from.
    """
    stack = [root]
    while stack:
      expr = stack.pop()
      self.visit(expr)
      children = list(expr.iter_subexpressions())
      stack.extend(reversed(children))

  def visit(self, expr: Expr) -> None:
    if expr.kind != ExprKind.BLOCK or expr.block is None:
      return
    if not expr.block.is_user_unsafe:
      return

    self.blocks_checked += 1
    for finding in classify_unsafe_block(expr.block, self.oracle, self._record_unhandled):
      self.report(finding)

  def _record_unhandled(self, tail: Expr) -> None:
    self.unhandled[tail.label or tail.kind.value] += 1


def collect_findings(unit: AnalysisUnit, oracle: SafetyOracle) -> List[Finding]:
  """
  Convenience wrapper returning the findings of a unit as a list.

  Args:
      unit: The lowered unit.
      oracle: Safety oracle backed by the unit's semantic model.

  Returns:
      List[Finding]: Findings in traversal order.
  """
  findings: List[Finding] = []
  UnsafeBlockWalker(oracle, findings.append).walk_unit(unit)
  return findings
