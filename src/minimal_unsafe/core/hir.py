"""
Host-independent tree consumed by the analyzer.

Hosts (the libcst Python frontend, the JSON export loader) lower their own
syntax trees into these structures. The analyzer only reads them.

Structures:
    - ``Location``: A source position.
    - ``Expr``: An expression tagged with an ``ExprKind``.
    - ``Stmt``: A statement, exposing the expressions it contains.
    - ``Block``: Statements, an optional tail expression and a ``ScopeMarker``.
    - ``AnalysisUnit``: A lowered file.
    - ``CallableDef``: A resolved call target with its declared safety.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional

from minimal_unsafe.enums import ExprKind, Safety, ScopeMarker


@dataclass(frozen=True)
class Location:
  """A 1-based line / 0-based column position inside a unit."""

  path: str
  line: int
  column: int

  def __str__(self) -> str:
    return f"{self.path}:{self.line}:{self.column}"


@dataclass(eq=False)
class Expr:
  """
  An expression node.

  ``children`` lists every direct sub-expression, including ``callee`` for calls.
  ``origin`` is the host's own node and is only interpreted by the host's
  semantic model.
  """

  kind: ExprKind
  location: Location
  children: List["Expr"] = field(default_factory=list)
  block: Optional["Block"] = None
  callee: Optional["Expr"] = None
  method_name: Optional[str] = None
  label: str = ""
  origin: Any = None

  def iter_subexpressions(self) -> Iterator["Expr"]:
    """Yields direct sub-expressions, descending into the block of a block expression."""
    if self.block is not None:
      yield from self.block.iter_expressions()
    yield from self.children


@dataclass(eq=False)
class Stmt:
  """A statement. ``exprs`` are the expressions it contains (e.g. nested bodies)."""

  location: Location
  label: str = ""
  exprs: List[Expr] = field(default_factory=list)


@dataclass(eq=False)
class Block:
  """
  An ordered sequence of statements plus an optional tail expression.
  """

  location: Location
  stmts: List[Stmt] = field(default_factory=list)
  tail: Optional[Expr] = None
  marker: ScopeMarker = ScopeMarker.NONE

  @property
  def is_user_unsafe(self) -> bool:
    return self.marker == ScopeMarker.USER_UNSAFE

  def iter_expressions(self) -> Iterator[Expr]:
    """Yields the top-level expressions of the statements, then the tail."""
    for stmt in self.stmts:
      yield from stmt.exprs
    if self.tail is not None:
      yield self.tail


@dataclass(eq=False)
class AnalysisUnit:
  """A lowered source unit. ``root`` is a block expression holding the whole file."""

  path: str
  root: Expr


@dataclass(frozen=True)
class CallableDef:
  """A resolved function or method definition."""

  name: str
  safety: Safety
  location: Optional[Location] = None

  @property
  def is_safe(self) -> bool:
    return self.safety == Safety.SAFE
