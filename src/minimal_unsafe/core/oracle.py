"""
Safety Oracle.

Answers whether invoking a call site requires an unsafe scope. Target
resolution is delegated to a host-provided `SemanticModel`, so any language
layer exposing definition lookup can back the oracle.
"""

import logging
from typing import Optional, Protocol

from minimal_unsafe.core.hir import CallableDef, Expr
from minimal_unsafe.enums import ExprKind, Safety

logger = logging.getLogger(__name__)


class SemanticModel(Protocol):
  """
  Resolution hooks supplied by a host.

  Both methods return ``None`` when the target cannot be resolved to a concrete
  definition with a declared safety qualifier.
  """

  def resolve_call(self, call: Expr) -> Optional[CallableDef]: ...

  def resolve_method(self, call: Expr) -> Optional[CallableDef]: ...


class SafetyOracle:
  """
  Resolves the safety of call sites.

  The oracle is read-only and keeps no state between queries.
  """

  def __init__(self, semantics: SemanticModel):
    """
    Initializes the oracle.

    Args:
        semantics: Host resolution hooks.
    """
    self.semantics = semantics

  def resolve_callable_safety(self, call: Expr) -> Safety:
    """
    Determines whether calling the target of `call` requires an unsafe scope.

    Args:
        call: An expression of kind CALL or METHOD_CALL.

    Returns:
        SAFE or UNSAFE per the target's declared qualifier, SAFE for closure
        invocations, UNKNOWN when the target cannot be resolved.
    """
    if call.kind == ExprKind.CALL:
      if call.callee is not None and call.callee.kind == ExprKind.CLOSURE:
        return Safety.SAFE
      definition = self.semantics.resolve_call(call)
    elif call.kind == ExprKind.METHOD_CALL:
      definition = self.semantics.resolve_method(call)
    else:
      return Safety.UNKNOWN

    if definition is None:
      logger.debug(f"Unresolved {call.kind.value} target at {call.location}")
      return Safety.UNKNOWN

    return definition.safety
