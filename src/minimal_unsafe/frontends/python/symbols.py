"""
Scope-aware Definition Collection and Call Resolution for Python sources.

This module backs the `SemanticModel` protocol for the Python host. It answers
two questions about a call site:

1.  **Calls** (`f(...)`): Which `def` or `class` does `f` name at this point?
2.  **Method calls** (`x.m(...)`): What class is `x` an instance of, and which
    `def` does `m` resolve to through that class and its bases?

It also tells the lowering whether the truth test of an `if`, `while` or
conditional expression can run user code (`__bool__`, `__len__`).

The `DefinitionCollector` visitor populates a tree of `Scope` objects by
tracking every way Python binds a name (definitions, assignments, parameters,
imports, loop targets, `global`, `nonlocal` ...). A name only resolves when its
nearest binding scope holds exactly one binding. Everything else resolves to
nothing, which the oracle treats as unsafe.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import libcst as cst

from minimal_unsafe.config import RuntimeConfig
from minimal_unsafe.core.hir import CallableDef, Expr
from minimal_unsafe.enums import Safety
from minimal_unsafe.frontends.python.scanners import (
  bound_names,
  decorator_name,
  get_full_name,
  string_annotation,
)

# Bounds receiver inference through chains of assignments and calls.
MAX_INFERENCE_DEPTH = 16

_SELF_ANNOTATIONS = {"Self", "typing.Self", "typing_extensions.Self"}

_DATACLASS_DECORATORS = {"dataclass", "dataclasses.dataclass"}

# Truthiness of instances of these never runs user code.
_BUILTIN_TYPES = {
  "bool",
  "int",
  "float",
  "complex",
  "str",
  "bytes",
  "bytearray",
  "list",
  "tuple",
  "dict",
  "set",
  "frozenset",
  "range",
}

# Builtins whose result is always an instance of a builtin type.
_BUILTIN_RESULTS = _BUILTIN_TYPES | {
  "len",
  "isinstance",
  "issubclass",
  "callable",
  "hasattr",
  "id",
  "hash",
  "repr",
  "ascii",
  "ord",
  "chr",
  "sorted",
  "any",
  "all",
  "format",
}

_BUILTIN_LITERALS = (
  cst.Integer,
  cst.Float,
  cst.Imaginary,
  cst.SimpleString,
  cst.ConcatenatedString,
  cst.FormattedString,
  cst.List,
  cst.Tuple,
  cst.Dict,
  cst.Set,
  cst.ListComp,
  cst.SetComp,
  cst.DictComp,
  cst.GeneratorExp,
  cst.Lambda,
)

_TRUTH_DUNDERS = ("__bool__", "__len__")


class BindingKind(str, Enum):
  FUNCTION = "function"
  CLASS = "class"
  ASSIGN = "assign"
  PARAM = "param"
  SELF = "self"
  OPAQUE = "opaque"


@dataclass(eq=False)
class FunctionInfo:
  """
  A `def` statement.

  `safety` is None when a decorator other than a marker or a transparent
  decorator wraps the function, since the bound object is then unknown.
  """

  name: str
  node: cst.FunctionDef
  scope: "Scope"
  owner: Optional["ClassInfo"]
  safety: Optional[Safety]

  @property
  def qualified_name(self) -> str:
    if self.owner is not None:
      return f"{self.owner.name}.{self.name}"
    return self.name


@dataclass(eq=False)
class ClassInfo:
  """
  A `class` statement. `body_scope` holds the names bound in the class body.

  `generated_init` is True when `@dataclass` writes an `__init__` for the class,
  and None when its `init=` argument is not a literal.
  """

  name: str
  node: cst.ClassDef
  scope: "Scope"
  body_scope: "Scope"
  bases: List[cst.BaseExpression] = field(default_factory=list)
  has_metaclass: bool = False
  transparent: bool = True
  generated_init: Optional[bool] = False


@dataclass(eq=False)
class Binding:
  kind: BindingKind
  scope: "Scope"
  function: Optional[FunctionInfo] = None
  cls: Optional[ClassInfo] = None
  value: Optional[cst.BaseExpression] = None
  annotation: Optional[cst.BaseExpression] = None
  owner: Optional[ClassInfo] = None


class Scope:
  """
  Represents a variable scope (Module, Class, Function or Lambda).
  """

  def __init__(self, parent: Optional["Scope"] = None, name: str = "<module>", is_class: bool = False):
    """
    Initialize the scope.

    Args:
        parent: The enclosing scope (None for the module).
        name: Debug name for the scope.
        is_class: Class bodies are skipped when resolving names from nested scopes.
    """
    self.parent = parent
    self.name = name
    self.is_class = is_class
    self.bindings: Dict[str, List[Binding]] = {}
    self.opaque = False

  def bind(self, name: str, binding: Binding) -> None:
    """
    Register a binding of `name` in this scope.

    Args:
        name: Variable identifier.
        binding: How the name is bound.
    """
    self.bindings.setdefault(name, []).append(binding)

  def bind_opaque(self, name: str) -> None:
    self.bind(name, Binding(BindingKind.OPAQUE, scope=self))

  def lookup(self, name: str) -> Optional[Binding]:
    """
    Resolve a name the way Python does, skipping enclosing class bodies.

    Args:
        name: Variable identifier to lookup.

    Returns:
        The unique binding in the nearest scope binding `name`, or None if that
        scope binds it more than once, a star import hides it, or it is unbound.
    """
    scope: Optional[Scope] = self
    while scope is not None:
      if scope is self or not scope.is_class:
        if scope.opaque:
          return None
        if name in scope.bindings:
          candidates = scope.bindings[name]
          return candidates[0] if len(candidates) == 1 else None
      scope = scope.parent
    return None

  def is_unbound(self, name: str) -> bool:
    """True if no visible scope binds `name`, so it refers to the builtin."""
    scope: Optional[Scope] = self
    while scope is not None:
      if scope is self or not scope.is_class:
        if scope.opaque or name in scope.bindings:
          return False
      scope = scope.parent
    return True

  def enclosing_function_scopes(self) -> List["Scope"]:
    """Returns the enclosing non-class, non-module scopes, innermost first."""
    result = []
    scope = self.parent
    while scope is not None and scope.parent is not None:
      if not scope.is_class:
        result.append(scope)
      scope = scope.parent
    return result

  def root(self) -> "Scope":
    scope = self
    while scope.parent is not None:
      scope = scope.parent
    return scope


class DefinitionCollector(cst.CSTVisitor):
  """
  Populates the scope tree and remembers the scope of every call site and
  truth test.
  """

  def __init__(self, config: RuntimeConfig):
    self.config = config
    self.root_scope = Scope()
    self.current_scope = self.root_scope
    self.scope_of: Dict[cst.CSTNode, Scope] = {}
    self.functions: Dict[cst.FunctionDef, FunctionInfo] = {}
    self._class_stack: List[Optional[ClassInfo]] = [None]

  # --- Scoping ---

  def visit_ClassDef(self, node: cst.ClassDef) -> None:
    body_scope = Scope(parent=self.current_scope, name=f"class_{node.name.value}", is_class=True)
    decorators = [decorator_name(d) for d in node.decorators]
    info = ClassInfo(
      name=node.name.value,
      node=node,
      scope=self.current_scope,
      body_scope=body_scope,
      bases=[arg.value for arg in node.bases],
      has_metaclass=any(kw.keyword is not None and kw.keyword.value == "metaclass" for kw in node.keywords),
      transparent=all(d in self.config.transparent_decorators for d in decorators),
      generated_init=_dataclass_init(node.decorators),
    )
    self.current_scope.bind(info.name, Binding(BindingKind.CLASS, scope=self.current_scope, cls=info))
    self.current_scope = body_scope
    self._class_stack.append(info)

  def leave_ClassDef(self, node: cst.ClassDef) -> None:
    self._class_stack.pop()
    if self.current_scope.parent:
      self.current_scope = self.current_scope.parent

  def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
    owner = self._class_stack[-1] if self.current_scope.is_class else None
    decorators = [decorator_name(d) for d in node.decorators]
    info = FunctionInfo(
      name=node.name.value,
      node=node,
      scope=self.current_scope,
      owner=owner,
      safety=self._declared_safety(decorators),
    )
    self.functions[node] = info
    self.current_scope.bind(info.name, Binding(BindingKind.FUNCTION, scope=self.current_scope, function=info))

    func_scope = Scope(parent=self.current_scope, name=f"func_{info.name}")
    self._bind_parameters(node.params, func_scope, owner, decorators)
    self.current_scope = func_scope
    self._class_stack.append(None)

  def leave_FunctionDef(self, node: cst.FunctionDef) -> None:
    self._class_stack.pop()
    if self.current_scope.parent:
      self.current_scope = self.current_scope.parent

  def visit_Lambda(self, node: cst.Lambda) -> None:
    lambda_scope = Scope(parent=self.current_scope, name="lambda")
    self._bind_parameters(node.params, lambda_scope, None, [])
    self.current_scope = lambda_scope

  def leave_Lambda(self, node: cst.Lambda) -> None:
    if self.current_scope.parent:
      self.current_scope = self.current_scope.parent

  def _bind_parameters(
    self,
    params: cst.Parameters,
    scope: Scope,
    owner: Optional[ClassInfo],
    decorators: List[str],
  ) -> None:
    positional = list(params.posonly_params) + list(params.params)
    is_instance_method = owner is not None and not {"staticmethod", "classmethod"} & set(decorators)

    for index, param in enumerate(positional):
      if index == 0 and is_instance_method:
        scope.bind(param.name.value, Binding(BindingKind.SELF, scope=scope, owner=owner))
      else:
        annotation = param.annotation.annotation if param.annotation else None
        scope.bind(param.name.value, Binding(BindingKind.PARAM, scope=scope, annotation=annotation))

    for param in params.kwonly_params:
      annotation = param.annotation.annotation if param.annotation else None
      scope.bind(param.name.value, Binding(BindingKind.PARAM, scope=scope, annotation=annotation))

    for star in (params.star_arg, params.star_kwarg):
      if isinstance(star, cst.Param):
        scope.bind_opaque(star.name.value)

  def _declared_safety(self, decorators: List[str]) -> Optional[Safety]:
    if any(self.config.is_marker(d) for d in decorators):
      return Safety.UNSAFE
    if all(d in self.config.transparent_decorators for d in decorators):
      return Safety.SAFE
    return None

  # --- Bindings ---

  def visit_Assign(self, node: cst.Assign) -> None:
    if len(node.targets) == 1 and isinstance(node.targets[0].target, cst.Name):
      name = node.targets[0].target.value
      self.current_scope.bind(name, Binding(BindingKind.ASSIGN, scope=self.current_scope, value=node.value))
      return
    for target in node.targets:
      self._bind_target(target.target)

  def visit_AnnAssign(self, node: cst.AnnAssign) -> None:
    if isinstance(node.target, cst.Name) and node.value is not None:
      binding = Binding(
        BindingKind.ASSIGN,
        scope=self.current_scope,
        value=node.value,
        annotation=node.annotation.annotation,
      )
      self.current_scope.bind(node.target.value, binding)
      return
    self._bind_target(node.target)

  def visit_AugAssign(self, node: cst.AugAssign) -> None:
    self._bind_target(node.target)

  def visit_NamedExpr(self, node: cst.NamedExpr) -> None:
    self._bind_target(node.target)

  def visit_For(self, node: cst.For) -> None:
    self._bind_target(node.target)

  def visit_CompFor(self, node: cst.CompFor) -> None:
    self._bind_target(node.target)

  def visit_WithItem(self, node: cst.WithItem) -> None:
    if node.asname is not None:
      self._bind_target(node.asname.name)

  def visit_ExceptHandler(self, node: cst.ExceptHandler) -> None:
    if node.name is not None:
      self._bind_target(node.name.name)

  def visit_Del(self, node: cst.Del) -> None:
    self._bind_target(node.target)

  def visit_Import(self, node: cst.Import) -> None:
    for alias in node.names:
      if alias.asname is not None:
        self._bind_target(alias.asname.name)
      else:
        self.current_scope.bind_opaque(get_full_name(alias.name).split(".")[0])

  def visit_ImportFrom(self, node: cst.ImportFrom) -> None:
    if isinstance(node.names, cst.ImportStar):
      self.current_scope.opaque = True
      return
    for alias in node.names:
      if alias.asname is not None:
        self._bind_target(alias.asname.name)
      else:
        self.current_scope.bind_opaque(get_full_name(alias.name))

  def visit_Global(self, node: cst.Global) -> None:
    root = self.current_scope.root()
    for item in node.names:
      self.current_scope.bind_opaque(item.name.value)
      root.bind_opaque(item.name.value)

  def visit_Nonlocal(self, node: cst.Nonlocal) -> None:
    for item in node.names:
      self.current_scope.bind_opaque(item.name.value)
      for scope in self.current_scope.enclosing_function_scopes():
        scope.bind_opaque(item.name.value)

  def visit_MatchAs(self, node: cst.MatchAs) -> None:
    if node.name is not None:
      self.current_scope.bind_opaque(node.name.value)

  def visit_MatchStar(self, node: cst.MatchStar) -> None:
    if node.name is not None:
      self.current_scope.bind_opaque(node.name.value)

  def visit_MatchMapping(self, node: cst.MatchMapping) -> None:
    if node.rest is not None:
      self.current_scope.bind_opaque(node.rest.value)

  def _bind_target(self, target: cst.BaseExpression) -> None:
    for name in bound_names(target):
      self.current_scope.bind_opaque(name)

  # --- Usage ---

  def visit_Call(self, node: cst.Call) -> None:
    self.scope_of[node] = self.current_scope

  def visit_If(self, node: cst.If) -> None:
    self.scope_of[node.test] = self.current_scope

  def visit_While(self, node: cst.While) -> None:
    self.scope_of[node.test] = self.current_scope

  def visit_IfExp(self, node: cst.IfExp) -> None:
    self.scope_of[node.test] = self.current_scope


def _dataclass_init(decorators: Sequence[cst.Decorator]) -> Optional[bool]:
  """Whether a `@dataclass` decorator generates `__init__`; None if `init=` is not a literal."""
  for decorator in decorators:
    if decorator_name(decorator) not in _DATACLASS_DECORATORS:
      continue
    expr = decorator.decorator
    if not isinstance(expr, cst.Call):
      return True
    for arg in expr.args:
      if arg.keyword is not None and arg.keyword.value == "init":
        if isinstance(arg.value, cst.Name) and arg.value.value in ("True", "False"):
          return arg.value.value == "True"
        return None
    return True
  return False


def _small_statements(suite: cst.BaseSuite) -> List[cst.BaseSmallStatement]:
  if isinstance(suite, cst.SimpleStatementSuite):
    return list(suite.body)
  items: List[cst.BaseSmallStatement] = []
  for line in suite.body:
    if isinstance(line, cst.SimpleStatementLine):
      items.extend(line.body)
  return items


class PythonSemanticModel:
  """
  `SemanticModel` implementation over a LibCST module.

  `Expr.origin` of call expressions must be the `cst.Call` node from the same
  module object the model was built on.
  """

  def __init__(self, module: cst.Module, config: Optional[RuntimeConfig] = None):
    """
    Collects definitions of `module`.

    Args:
        module: The parsed module (use `MetadataWrapper.module` if positions are resolved).
        config: Marker and decorator settings.
    """
    self.config = config or RuntimeConfig()
    self.collector = DefinitionCollector(self.config)
    module.visit(self.collector)

  # --- SemanticModel protocol ---

  def resolve_call(self, call: Expr) -> Optional[CallableDef]:
    node = call.origin
    if not isinstance(node, cst.Call) or not isinstance(node.func, cst.Name):
      return None
    scope = self.collector.scope_of.get(node)
    if scope is None:
      return None

    binding = scope.lookup(node.func.value)
    if binding is None:
      return None
    if binding.kind == BindingKind.FUNCTION:
      return self._callable(binding.function)
    if binding.kind == BindingKind.CLASS:
      return self._constructor(binding.cls)
    return None

  def resolve_method(self, call: Expr) -> Optional[CallableDef]:
    node = call.origin
    if not isinstance(node, cst.Call) or not isinstance(node.func, cst.Attribute):
      return None
    scope = self.collector.scope_of.get(node)
    if scope is None:
      return None

    function = self._method_target(node.func, scope, depth=0)
    if function is None:
      return None
    return self._callable(function)

  # --- Truth tests ---

  def truth_test_is_safe(self, test: cst.BaseExpression) -> bool:
    """
    Decides whether taking the truth value of `test` can only run safe code.

    `if`, `while` and conditional expressions call `__bool__` or `__len__` on
    the value of their test. That call belongs to the statement itself, so an
    unsafe block around the statement can only be narrowed when it is safe.

    Args:
        test: The `test` of a `cst.If`, `cst.While` or `cst.IfExp` in this module.

    Returns:
        bool: True if the value is of a builtin type, or of a class whose
        truth protocol resolves to safe methods. False when unsure.
    """
    scope = self.collector.scope_of.get(test)
    if scope is None:
      return False
    return self._truth_is_safe(test, scope, 0)

  def _truth_is_safe(self, expr: cst.BaseExpression, scope: Scope, depth: int) -> bool:
    if depth > MAX_INFERENCE_DEPTH:
      return False
    # `a or b` evaluates to one of its operands.
    if isinstance(expr, cst.BooleanOperation):
      return self._truth_is_safe(expr.left, scope, depth + 1) and self._truth_is_safe(expr.right, scope, depth + 1)
    if self._builtin_value(expr, scope, depth):
      return True

    cls = self._infer_instance(expr, scope, depth)
    if cls is None:
      return False
    for dunder in _TRUTH_DUNDERS:
      binding, complete = self._find_member(cls, dunder, set())
      if not complete:
        return False
      if binding is None:
        continue
      if binding.kind != BindingKind.FUNCTION or binding.function.safety != Safety.SAFE:
        return False
    return True

  def _builtin_value(self, expr: cst.BaseExpression, scope: Scope, depth: int) -> bool:
    """True if `expr` certainly evaluates to an instance of a builtin type."""
    if depth > MAX_INFERENCE_DEPTH:
      return False

    if isinstance(expr, _BUILTIN_LITERALS):
      return True

    if isinstance(expr, cst.Name):
      if expr.value in ("True", "False", "None"):
        return True
      binding = scope.lookup(expr.value)
      if binding is None:
        return False
      if binding.kind == BindingKind.PARAM:
        return binding.annotation is not None and self._builtin_annotation(binding.annotation, binding.scope)
      if binding.kind == BindingKind.ASSIGN:
        if binding.value is not None and self._builtin_value(binding.value, binding.scope, depth + 1):
          return True
        return binding.annotation is not None and self._builtin_annotation(binding.annotation, binding.scope)
      return False

    if isinstance(expr, cst.UnaryOperation):
      if isinstance(expr.operator, cst.Not):
        return True
      return self._builtin_value(expr.expression, scope, depth + 1)

    if isinstance(expr, (cst.BinaryOperation, cst.BooleanOperation)):
      return self._builtin_value(expr.left, scope, depth + 1) and self._builtin_value(expr.right, scope, depth + 1)

    if isinstance(expr, cst.Comparison):
      if all(isinstance(c.operator, (cst.Is, cst.IsNot)) for c in expr.comparisons):
        return True
      operands = [expr.left] + [c.comparator for c in expr.comparisons]
      return all(self._builtin_value(operand, scope, depth + 1) for operand in operands)

    if isinstance(expr, cst.Call) and isinstance(expr.func, cst.Name):
      name = expr.func.value
      binding = scope.lookup(name)
      if binding is None:
        return name in _BUILTIN_RESULTS and scope.is_unbound(name)
      if binding.kind == BindingKind.FUNCTION and binding.function.safety is not None:
        returns = binding.function.node.returns
        return returns is not None and self._builtin_annotation(returns.annotation, binding.function.scope)

    return False

  def _builtin_annotation(self, annotation: cst.BaseExpression, scope: Scope) -> bool:
    if isinstance(annotation, (cst.SimpleString, cst.ConcatenatedString)):
      name = string_annotation(annotation)
    elif isinstance(annotation, cst.Subscript):
      name = get_full_name(annotation.value)
    else:
      name = get_full_name(annotation)
    return name in _BUILTIN_TYPES and scope.is_unbound(name)

  # --- Definitions ---

  def _callable(self, function: FunctionInfo) -> Optional[CallableDef]:
    if function.safety is None:
      return None
    return CallableDef(name=function.qualified_name, safety=function.safety)

  def _constructor(self, cls: ClassInfo) -> Optional[CallableDef]:
    if cls.has_metaclass or not cls.transparent:
      return None

    new_binding, new_complete = self._find_member(cls, "__new__", set())
    if new_binding is not None or not new_complete:
      return None

    if cls.generated_init is None:
      return None
    # An `__init__` written in the body wins over the generated one.
    if cls.generated_init and "__init__" not in cls.body_scope.bindings:
      return self._dataclass_constructor(cls)

    init_binding, init_complete = self._find_member(cls, "__init__", set())
    if init_binding is None:
      if init_complete:
        return CallableDef(name=cls.name, safety=Safety.SAFE)
      return None
    if init_binding.kind != BindingKind.FUNCTION:
      return None
    return self._callable(init_binding.function)

  def _dataclass_constructor(self, cls: ClassInfo) -> Optional[CallableDef]:
    """
    Safety of a generated dataclass `__init__`.

    It calls field default factories and then `__post_init__`, so it is only as
    safe as those.
    """
    if self._has_field_factories(cls, set()):
      return None
    post_binding, post_complete = self._find_member(cls, "__post_init__", set())
    if not post_complete:
      return None
    if post_binding is None:
      return CallableDef(name=cls.name, safety=Safety.SAFE)
    if post_binding.kind != BindingKind.FUNCTION:
      return None
    return self._callable(post_binding.function)

  def _has_field_factories(self, cls: ClassInfo, seen: set) -> bool:
    if id(cls) in seen:
      return False
    seen.add(id(cls))
    for item in _small_statements(cls.node.body):
      if isinstance(item, cst.AnnAssign) and isinstance(item.value, cst.Call):
        if any(arg.keyword is not None and arg.keyword.value == "default_factory" for arg in item.value.args):
          return True
    for base in cls.bases:
      base_cls = self._class_named(base, cls.scope)
      if base_cls is not None and self._has_field_factories(base_cls, seen):
        return True
    return False

  def _find_member(self, cls: ClassInfo, name: str, seen: set) -> Tuple[Optional[Binding], bool]:
    """
    Looks `name` up in a class body, then depth-first through its bases.

    Returns:
        (binding, complete): `binding` is the member if found and unambiguous.
        `complete` is False when the search hit something it could not follow
        (an unresolved base, an ambiguous member, a cycle).
    """
    if id(cls) in seen:
      return None, False
    seen = seen | {id(cls)}

    candidates = cls.body_scope.bindings.get(name)
    if candidates:
      if len(candidates) == 1:
        return candidates[0], True
      return None, False
    if cls.body_scope.opaque:
      return None, False

    for base in cls.bases:
      if isinstance(base, cst.Name) and base.value == "object" and cls.scope.lookup("object") is None:
        continue
      base_cls = self._class_named(base, cls.scope)
      if base_cls is None:
        return None, False
      found, complete = self._find_member(base_cls, name, seen)
      if found is not None or not complete:
        return found, complete

    return None, True

  def _method_target(self, func: cst.Attribute, scope: Scope, depth: int) -> Optional[FunctionInfo]:
    method_name = func.attr.value
    receiver = func.value

    # Class-level access: `A.method(instance)`
    receiver_cls = self._class_named(receiver, scope)
    if receiver_cls is None:
      receiver_cls = self._infer_instance(receiver, scope, depth)
    if receiver_cls is None:
      return None

    binding, _ = self._find_member(receiver_cls, method_name, set())
    if binding is None or binding.kind != BindingKind.FUNCTION:
      return None
    return binding.function

  def _class_named(self, expr: cst.BaseExpression, scope: Scope) -> Optional[ClassInfo]:
    if not isinstance(expr, cst.Name):
      return None
    binding = scope.lookup(expr.value)
    if binding is None or binding.kind != BindingKind.CLASS:
      return None
    return binding.cls

  # --- Receiver inference ---

  def _infer_instance(self, expr: cst.BaseExpression, scope: Scope, depth: int) -> Optional[ClassInfo]:
    """
    Infers the class of the object `expr` evaluates to.

    Args:
        expr: The receiver expression.
        scope: Scope `expr` is evaluated in.
        depth: Current recursion depth.

    Returns:
        The class, or None when it cannot be determined.
    """
    if depth > MAX_INFERENCE_DEPTH:
      return None

    if isinstance(expr, cst.Call):
      return self._infer_call_result(expr, scope, depth + 1)

    if isinstance(expr, cst.Name):
      binding = scope.lookup(expr.value)
      if binding is None:
        return None
      if binding.kind == BindingKind.SELF:
        return binding.owner
      if binding.kind == BindingKind.PARAM and binding.annotation is not None:
        return self._annotation_class(binding.annotation, binding.scope, None)
      if binding.kind == BindingKind.ASSIGN:
        inferred = None
        if binding.value is not None:
          inferred = self._infer_instance(binding.value, binding.scope, depth + 1)
        if inferred is None and binding.annotation is not None:
          inferred = self._annotation_class(binding.annotation, binding.scope, None)
        return inferred

    return None

  def _infer_call_result(self, call: cst.Call, scope: Scope, depth: int) -> Optional[ClassInfo]:
    func = call.func
    if isinstance(func, cst.Name):
      binding = scope.lookup(func.value)
      if binding is None:
        return None
      if binding.kind == BindingKind.CLASS:
        cls = binding.cls
        if cls.has_metaclass or not cls.transparent:
          return None
        return cls
      if binding.kind == BindingKind.FUNCTION and binding.function.safety is not None:
        return self._return_class(binding.function, None)
      return None

    if isinstance(func, cst.Attribute):
      receiver_cls = self._class_named(func.value, scope)
      if receiver_cls is None:
        receiver_cls = self._infer_instance(func.value, scope, depth)
      if receiver_cls is None:
        return None
      binding, _ = self._find_member(receiver_cls, func.attr.value, set())
      if binding is None or binding.kind != BindingKind.FUNCTION or binding.function.safety is None:
        return None
      return self._return_class(binding.function, receiver_cls)

    return None

  def _return_class(self, function: FunctionInfo, receiver: Optional[ClassInfo]) -> Optional[ClassInfo]:
    returns = function.node.returns
    if returns is None:
      return None
    self_type = receiver or function.owner
    return self._annotation_class(returns.annotation, function.scope, self_type)

  def _annotation_class(
    self,
    annotation: cst.BaseExpression,
    scope: Scope,
    self_type: Optional[ClassInfo],
  ) -> Optional[ClassInfo]:
    if isinstance(annotation, (cst.SimpleString, cst.ConcatenatedString)):
      text = string_annotation(annotation)
      if text in _SELF_ANNOTATIONS:
        return self_type
      if not text.isidentifier():
        return None
      binding = scope.lookup(text)
      if binding is None or binding.kind != BindingKind.CLASS:
        return None
      return binding.cls

    dotted = get_full_name(annotation)
    if dotted in _SELF_ANNOTATIONS:
      return self_type
    return self._class_named(annotation, scope)
