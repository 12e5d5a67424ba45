"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- A builder for hand-made analyzer trees and a dictionary-backed semantic model.
- Helpers lowering Python snippets and locating their unsafe blocks.
- Console / debug level isolation between tests.
"""

import sys
import textwrap
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

# Add src to path so we can import 'minimal_unsafe' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from minimal_unsafe.core.hir import AnalysisUnit, Block, CallableDef, Expr, Location, Stmt  # noqa: E402
from minimal_unsafe.enums import ExprKind, Safety, ScopeMarker  # noqa: E402
from minimal_unsafe.frontends.python import PythonSemanticModel, load_python  # noqa: E402
from minimal_unsafe.utils.console import enable_debug, reset_console  # noqa: E402


class FakeSemantics:
  """
  Semantic model resolving calls by their `origin`, looked up in a dictionary.

  Attributes:
      queries (List[Expr]): Every call the oracle asked about.
  """

  def __init__(self, definitions: Optional[Dict[str, Safety]] = None):
    self.definitions = definitions or {}
    self.queries: List[Expr] = []

  def resolve_call(self, call: Expr) -> Optional[CallableDef]:
    self.queries.append(call)
    return self._lookup(call)

  def resolve_method(self, call: Expr) -> Optional[CallableDef]:
    self.queries.append(call)
    return self._lookup(call)

  def _lookup(self, call: Expr) -> Optional[CallableDef]:
    if call.origin not in self.definitions:
      return None
    return CallableDef(name=call.origin, safety=self.definitions[call.origin])


class HirBuilder:
  """
  Builds analyzer trees by hand. Every node gets its own line number so
  findings can be told apart by location.
  """

  def __init__(self, path: str = "built.hir"):
    self.path = path
    self._line = 0

  def loc(self) -> Location:
    self._line += 1
    return Location(self.path, self._line, 0)

  def expr(self, kind: ExprKind, *children: Expr, label: str = "") -> Expr:
    return Expr(kind=kind, location=self.loc(), children=list(children), label=label)

  def other(self, label: str = "Path") -> Expr:
    return self.expr(ExprKind.OTHER, label=label)

  def closure(self) -> Expr:
    return self.expr(ExprKind.CLOSURE)

  def call(self, target: Optional[str] = None, *args: Expr, callee: Optional[Expr] = None) -> Expr:
    callee = callee or self.other()
    return Expr(
      kind=ExprKind.CALL,
      location=self.loc(),
      children=[callee, *args],
      callee=callee,
      origin=target,
    )

  def method_call(self, target: Optional[str] = None, receiver: Optional[Expr] = None, name: str = "m") -> Expr:
    receiver = receiver or self.other()
    return Expr(
      kind=ExprKind.METHOD_CALL,
      location=self.loc(),
      children=[receiver],
      method_name=name,
      origin=target,
    )

  def stmt(self, *exprs: Expr) -> Stmt:
    return Stmt(location=self.loc(), label="Let", exprs=list(exprs))

  def block(
    self,
    tail: Optional[Expr] = None,
    stmts: Tuple[Stmt, ...] = (),
    marker: ScopeMarker = ScopeMarker.NONE,
  ) -> Expr:
    block = Block(location=self.loc(), stmts=list(stmts), tail=tail, marker=marker)
    return Expr(kind=ExprKind.BLOCK, location=block.location, block=block)

  def unsafe(self, tail: Optional[Expr] = None, stmts: Tuple[Stmt, ...] = ()) -> Expr:
    return self.block(tail, stmts, ScopeMarker.USER_UNSAFE)

  def synthesized(self, tail: Optional[Expr] = None, stmts: Tuple[Stmt, ...] = ()) -> Expr:
    return self.block(tail, stmts, ScopeMarker.COMPILER_SYNTHESIZED)

  def unit(self, *exprs: Expr) -> AnalysisUnit:
    root = self.block(stmts=tuple(self.stmt(e) for e in exprs))
    return AnalysisUnit(path=self.path, root=root)


def lower_snippet(code: str) -> Tuple[AnalysisUnit, PythonSemanticModel]:
  """Lowers a dedented Python snippet."""
  return load_python(textwrap.dedent(code), "snippet.py")


def unsafe_blocks(unit: AnalysisUnit) -> List[Block]:
  """All user-authored unsafe blocks of a unit, in source order."""
  found = []
  stack = [unit.root]
  while stack:
    expr = stack.pop()
    if expr.kind == ExprKind.BLOCK and expr.block is not None and expr.block.is_user_unsafe:
      found.append(expr.block)
    stack.extend(reversed(list(expr.iter_subexpressions())))
  return found


@pytest.fixture
def hir() -> HirBuilder:
  return HirBuilder()


@pytest.fixture
def fake_semantics():
  """Factory for `FakeSemantics` seeded with a definition table."""
  return FakeSemantics


@pytest.fixture
def lower():
  """Returns `lower_snippet`."""
  return lower_snippet


@pytest.fixture
def find_unsafe_blocks():
  """Returns `unsafe_blocks`."""
  return unsafe_blocks


@pytest.fixture
def first_tail():
  """
  Lowers a snippet and returns the tail of its first unsafe block along with
  the semantic model, ready for `resolve_call` / `resolve_method`.
  """

  def _first_tail(code: str) -> Tuple[Expr, PythonSemanticModel]:
    unit, semantics = lower_snippet(code)
    blocks = unsafe_blocks(unit)
    assert blocks, "snippet holds no unsafe block"
    assert blocks[0].tail is not None
    return blocks[0].tail, semantics

  return _first_tail


@pytest.fixture(autouse=True)
def isolate_console():
  """Restores the default console and hides debug traces after each test."""
  yield
  enable_debug(False)
  reset_console()
