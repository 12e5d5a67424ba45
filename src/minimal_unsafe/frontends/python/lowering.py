"""
Lowering of LibCST modules into the analyzer's tree.

Conventions recognised in Python sources:

1.  **Unsafe blocks**: A `with` statement holding a single marker item
    (`with unsafe():`, `with unsafe:`, `with pkg.unsafe():`) is a user-authored
    unsafe block.
2.  **Unsafe functions**: A `def` decorated with a marker declares the function
    unsafe. Its body is lowered as a compiler-synthesized unsafe block.

Python statements do not yield values, so the last statement of a body plays
the role of the tail expression: its value when it only binds or passes one on
(`f()`, `return f()`, `x = f()`), the compound statement itself for
`if`/`for`/`while`/`with`/`try`/`match`, and an opaque expression otherwise.
Every earlier statement is a statement covered by the block.

`if` and `while` (and `a if c else b`) are conditionals and loops only when
taking the truth value of their test cannot run unsafe code. A `for` statement
always calls `__iter__` and `__next__` on user objects and stays opaque.
"""

from typing import List, Mapping, Optional, Sequence, Union

import libcst as cst
from libcst.metadata import CodeRange

from minimal_unsafe.config import RuntimeConfig
from minimal_unsafe.core.hir import AnalysisUnit, Block, Expr, Location, Stmt
from minimal_unsafe.enums import ExprKind, ScopeMarker
from minimal_unsafe.frontends.python.scanners import decorator_name, get_full_name
from minimal_unsafe.frontends.python.symbols import PythonSemanticModel

Statement = Union[cst.BaseSmallStatement, cst.BaseCompoundStatement]


class PythonLowering:
  """
  Converts a LibCST module into an `AnalysisUnit`.

  Attributes:
      path (str): Unit name used in locations.
      positions (Mapping): `PositionProvider` metadata for the module.
      config (RuntimeConfig): Marker settings.
      semantics (PythonSemanticModel): Model of the same module, for truth tests.
  """

  def __init__(
    self,
    path: str,
    positions: Mapping[cst.CSTNode, CodeRange],
    config: RuntimeConfig,
    semantics: PythonSemanticModel,
  ):
    self.path = path
    self.positions = positions
    self.config = config
    self.semantics = semantics

  def lower_module(self, module: cst.Module) -> AnalysisUnit:
    block = self._lower_body(module.body, module, ScopeMarker.NONE)
    root = Expr(kind=ExprKind.BLOCK, location=block.location, block=block, label="Module", origin=module)
    return AnalysisUnit(path=self.path, root=root)

  # --- Locations ---

  def _location(self, node: cst.CSTNode) -> Location:
    code_range = self.positions.get(node)
    if code_range is None:
      return Location(self.path, 1, 0)
    return Location(self.path, code_range.start.line, code_range.start.column)

  # --- Bodies ---

  def _lower_body(self, body: Sequence[cst.CSTNode], anchor: cst.CSTNode, marker: ScopeMarker) -> Block:
    items = _flatten(body)
    block = Block(location=self._location(anchor), marker=marker)
    if not items:
      return block

    block.stmts = [self._lower_statement(item) for item in items[:-1]]
    block.tail = self._lower_tail(items[-1])
    return block

  def _lower_suite(self, suite: cst.BaseSuite, anchor: cst.CSTNode, marker: ScopeMarker = ScopeMarker.NONE) -> Expr:
    block = self._lower_body(suite.body, anchor, marker)
    return Expr(kind=ExprKind.BLOCK, location=block.location, block=block, label=type(anchor).__name__, origin=anchor)

  def _lower_statement(self, item: Statement) -> Stmt:
    stmt = Stmt(location=self._location(item), label=type(item).__name__)
    if isinstance(item, cst.BaseCompoundStatement):
      stmt.exprs.append(self._lower_compound(item))
    return stmt

  def _lower_tail(self, item: Statement) -> Expr:
    if isinstance(item, cst.BaseCompoundStatement):
      return self._lower_compound(item)

    value = _passed_value(item)
    if value is not None:
      return self.lower_expression(value)
    return Expr(kind=ExprKind.OTHER, location=self._location(item), label=type(item).__name__, origin=item)

  # --- Compound statements ---

  def _lower_compound(self, node: cst.BaseCompoundStatement) -> Expr:
    location = self._location(node)
    label = type(node).__name__

    if isinstance(node, cst.With):
      if self._is_unsafe_with(node):
        block = self._lower_body(node.body.body, node, ScopeMarker.USER_UNSAFE)
        return Expr(kind=ExprKind.BLOCK, location=location, block=block, label=label, origin=node)
      return Expr(kind=ExprKind.OTHER, location=location, children=[self._lower_suite(node.body, node)], label=label)

    if isinstance(node, cst.If):
      kind = ExprKind.CONDITIONAL if self._if_tests_safe(node) else ExprKind.OTHER
      return Expr(kind=kind, location=location, children=self._if_branches(node), label=label)

    if isinstance(node, (cst.For, cst.While)):
      children = [self._lower_suite(node.body, node)]
      if node.orelse is not None:
        children.append(self._lower_suite(node.orelse.body, node.orelse))
      kind = ExprKind.OTHER
      if isinstance(node, cst.While) and self.semantics.truth_test_is_safe(node.test):
        kind = ExprKind.LOOP
      return Expr(kind=kind, location=location, children=children, label=label)

    if isinstance(node, cst.FunctionDef):
      marker = ScopeMarker.NONE
      if any(self.config.is_marker(decorator_name(d)) for d in node.decorators):
        marker = ScopeMarker.COMPILER_SYNTHESIZED
      return Expr(kind=ExprKind.OTHER, location=location, children=[self._lower_suite(node.body, node, marker)], label=label)

    children = [self._lower_suite(suite, owner) for suite, owner in _nested_suites(node)]
    return Expr(kind=ExprKind.OTHER, location=location, children=children, label=label)

  def _if_branches(self, node: cst.If) -> List[Expr]:
    branches = [self._lower_suite(node.body, node)]
    if isinstance(node.orelse, cst.If):
      branches.append(self._lower_compound(node.orelse))
    elif isinstance(node.orelse, cst.Else):
      branches.append(self._lower_suite(node.orelse.body, node.orelse))
    return branches

  def _if_tests_safe(self, node: cst.If) -> bool:
    """Every test of an `if`/`elif` chain runs as part of the outer statement."""
    current: Union[cst.If, cst.Else, None] = node
    while isinstance(current, cst.If):
      if not self.semantics.truth_test_is_safe(current.test):
        return False
      current = current.orelse
    return True

  def _is_unsafe_with(self, node: cst.With) -> bool:
    if node.asynchronous is not None or len(node.items) != 1:
      return False
    item = node.items[0].item
    if isinstance(item, cst.Call):
      if item.args:
        return False
      item = item.func
    return self.config.is_marker(get_full_name(item))

  # --- Expressions ---

  def lower_expression(self, node: cst.BaseExpression) -> Expr:
    """
    Lowers an expression, keeping only the structure classification needs.

    Args:
        node: The LibCST expression.

    Returns:
        Expr: The lowered expression; unsupported node types become OTHER.
    """
    location = self._location(node)
    label = type(node).__name__

    if isinstance(node, cst.List):
      children = [self.lower_expression(el.value) for el in node.elements]
      return Expr(kind=ExprKind.ARRAY, location=location, children=children, label=label, origin=node)

    if isinstance(node, cst.Tuple):
      children = [self.lower_expression(el.value) for el in node.elements]
      return Expr(kind=ExprKind.TUPLE, location=location, children=children, label=label, origin=node)

    if isinstance(node, cst.Lambda):
      return Expr(kind=ExprKind.CLOSURE, location=location, label=label, origin=node)

    if isinstance(node, cst.IfExp):
      children = [self.lower_expression(part) for part in (node.test, node.body, node.orelse)]
      kind = ExprKind.CONDITIONAL if self.semantics.truth_test_is_safe(node.test) else ExprKind.OTHER
      return Expr(kind=kind, location=location, children=children, label=label, origin=node)

    if isinstance(node, cst.Call):
      args = [self.lower_expression(arg.value) for arg in node.args]
      if isinstance(node.func, cst.Attribute):
        receiver = self.lower_expression(node.func.value)
        return Expr(
          kind=ExprKind.METHOD_CALL,
          location=location,
          children=[receiver, *args],
          method_name=node.func.attr.value,
          label=label,
          origin=node,
        )
      callee = self.lower_expression(node.func)
      return Expr(
        kind=ExprKind.CALL,
        location=location,
        children=[callee, *args],
        callee=callee,
        label=label,
        origin=node,
      )

    return Expr(kind=ExprKind.OTHER, location=location, label=label, origin=node)


def _flatten(body: Sequence[cst.CSTNode]) -> List[Statement]:
  """Expands `a; b` statement lines into their small statements."""
  items: List[Statement] = []
  for node in body:
    if isinstance(node, cst.SimpleStatementLine):
      items.extend(node.body)
    else:
      items.append(node)
  return items


def _passed_value(item: cst.BaseSmallStatement) -> Optional[cst.BaseExpression]:
  """
  Returns the expression a small statement evaluates and merely binds or passes on.

  Assignments to attributes or subscripts, and augmented assignments, dispatch
  to user code on their own and are kept opaque.
  """
  if isinstance(item, cst.Expr):
    return item.value
  if isinstance(item, cst.Return):
    return item.value
  if isinstance(item, cst.Assign):
    if all(isinstance(t.target, cst.Name) for t in item.targets):
      return item.value
    return None
  if isinstance(item, cst.AnnAssign):
    if isinstance(item.target, cst.Name):
      return item.value
    return None
  if isinstance(item, cst.Raise):
    return item.exc
  if isinstance(item, cst.Assert):
    return item.test
  return None


def _nested_suites(node: cst.BaseCompoundStatement) -> List[tuple]:
  """Pairs of (suite, owning node) for compound statements without a dedicated rule."""
  suites = []
  if isinstance(node, (cst.Try, cst.TryStar)):
    suites.append((node.body, node))
    for handler in node.handlers:
      suites.append((handler.body, handler))
    if node.orelse is not None:
      suites.append((node.orelse.body, node.orelse))
    if node.finalbody is not None:
      suites.append((node.finalbody.body, node.finalbody))
  elif isinstance(node, cst.Match):
    for case in node.cases:
      suites.append((case.body, case))
  elif isinstance(node, cst.ClassDef):
    suites.append((node.body, node))
  return suites
