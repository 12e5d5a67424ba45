"""
JSON HIR Host.

Loads trees exported by another language front-end (for instance a compiler
plugin dumping its typed HIR) and resolves call targets from the definition
table shipped alongside the tree.

Document layout::

    {
      "version": 1,
      "path": "src/lib.rs",
      "definitions": [{"id": "safe_fn", "name": "safe_fn", "safety": "safe"}],
      "root": {"kind": "block", "span": {"line": 1, "column": 0}, "block": {...}}
    }

Calls and method calls name their resolved definition with `target`. A missing
or unknown `target` is an unresolved call.
"""

from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from minimal_unsafe.core.errors import AnalysisError
from minimal_unsafe.core.hir import AnalysisUnit, Block, CallableDef, Expr, Location, Stmt
from minimal_unsafe.enums import ExprKind, Safety, ScopeMarker

SUPPORTED_VERSION = 1


class SpanModel(BaseModel):
  """Start position of a node."""

  line: int = Field(ge=1)
  column: int = Field(0, ge=0)


class DefinitionModel(BaseModel):
  """A callable definition with its declared safety qualifier."""

  id: str
  name: str
  safety: Literal["safe", "unsafe"]


class StmtModel(BaseModel):
  model_config = ConfigDict(extra="ignore")

  span: SpanModel
  label: str = ""
  exprs: List["ExprModel"] = Field(default_factory=list)


class BlockModel(BaseModel):
  model_config = ConfigDict(extra="ignore")

  span: SpanModel
  marker: ScopeMarker = ScopeMarker.NONE
  stmts: List[StmtModel] = Field(default_factory=list)
  tail: Optional["ExprModel"] = None


class ExprModel(BaseModel):
  """
  An exported expression.

  `kind` values outside the closed `ExprKind` set must be exported as "other"
  with the host's own node name in `label`.
  """

  model_config = ConfigDict(extra="ignore")

  kind: ExprKind
  span: SpanModel
  label: str = ""
  children: List["ExprModel"] = Field(default_factory=list)
  block: Optional[BlockModel] = None
  callee: Optional["ExprModel"] = None
  method: Optional[str] = None
  target: Optional[str] = Field(None, description="Definition id of the resolved call target.")


class HirDocument(BaseModel):
  """Top-level export document."""

  version: int = SUPPORTED_VERSION
  path: str = "<hir>"
  definitions: List[DefinitionModel] = Field(default_factory=list)
  root: ExprModel


StmtModel.model_rebuild()
BlockModel.model_rebuild()
ExprModel.model_rebuild()
HirDocument.model_rebuild()


class HirSemanticModel:
  """
  `SemanticModel` backed by the document's definition table.

  `Expr.origin` holds the `target` id exported for the call.
  """

  def __init__(self, definitions: List[DefinitionModel]):
    self.definitions: Dict[str, CallableDef] = {
      d.id: CallableDef(name=d.name, safety=Safety(d.safety)) for d in definitions
    }

  def resolve_call(self, call: Expr) -> Optional[CallableDef]:
    return self._lookup(call)

  def resolve_method(self, call: Expr) -> Optional[CallableDef]:
    return self._lookup(call)

  def _lookup(self, call: Expr) -> Optional[CallableDef]:
    if not isinstance(call.origin, str):
      return None
    return self.definitions.get(call.origin)


class HirConverter:
  """Turns validated models into analyzer structures."""

  def __init__(self, path: str):
    self.path = path

  def _location(self, span: SpanModel) -> Location:
    return Location(self.path, span.line, span.column)

  def expr(self, model: ExprModel) -> Expr:
    children = [self.expr(child) for child in model.children]
    callee = None
    if model.callee is not None:
      # Exporters may list the callee among the children as well; walk it once.
      for child_model, child in zip(model.children, children):
        if child_model == model.callee:
          callee = child
          break
      else:
        callee = self.expr(model.callee)
        children.insert(0, callee)

    return Expr(
      kind=model.kind,
      location=self._location(model.span),
      children=children,
      block=self.block(model.block) if model.block is not None else None,
      callee=callee,
      method_name=model.method,
      label=model.label,
      origin=model.target,
    )

  def block(self, model: BlockModel) -> Block:
    return Block(
      location=self._location(model.span),
      stmts=[self.stmt(s) for s in model.stmts],
      tail=self.expr(model.tail) if model.tail is not None else None,
      marker=model.marker,
    )

  def stmt(self, model: StmtModel) -> Stmt:
    return Stmt(location=self._location(model.span), label=model.label, exprs=[self.expr(e) for e in model.exprs])


def load_hir(text: str, path: Optional[str] = None) -> Tuple[AnalysisUnit, HirSemanticModel]:
  """
  Parses an exported HIR document.

  Args:
      text (str): The JSON document.
      path (str, optional): Overrides the document's own `path` in locations.

  Returns:
      Tuple[AnalysisUnit, HirSemanticModel]: The unit and its resolver.

  Raises:
      AnalysisError: If the document is malformed or has an unsupported version.
  """
  try:
    document = HirDocument.model_validate_json(text)
  except ValidationError as e:
    raise AnalysisError(path or "<hir>", f"invalid HIR export: {e.error_count()} validation error(s)\n{e}") from e

  unit_path = path or document.path
  if document.version != SUPPORTED_VERSION:
    raise AnalysisError(unit_path, f"unsupported HIR export version {document.version} (expected {SUPPORTED_VERSION})")

  root = HirConverter(unit_path).expr(document.root)
  return AnalysisUnit(path=unit_path, root=root), HirSemanticModel(document.definitions)
