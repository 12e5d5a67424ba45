"""
Unsafe-Block Minimality Classifier.

Decides whether a user-authored unsafe block could be narrowed.

Two checks run on a block:

1.  **Statements**: Any statement inside the block could be hoisted out of the
    unsafe scope on its own, so their presence alone makes the block non-minimal.
2.  **Tail expression**: Evaluated independently of the statements check.
    Arrays, blocks, closures, conditionals, loops and tuples are always safe to
    evaluate themselves; only their sub-expressions might need the scope.
    Calls and method calls are non-minimal only when their target is declared
    safe, which is asked of the `SafetyOracle`.

Kinds without a rule produce no finding. They are reported through `on_unhandled`
and the debug log so coverage gaps stay visible to maintainers only.
"""

import logging
from typing import Callable, Dict, List, Optional

from minimal_unsafe.core.finding import Finding
from minimal_unsafe.core.hir import Block, Expr
from minimal_unsafe.core.oracle import SafetyOracle
from minimal_unsafe.enums import ExprKind, Reason, Safety

logger = logging.getLogger(__name__)

UnhandledCallback = Callable[[Expr], None]

ALWAYS_NON_MINIMAL: Dict[ExprKind, Reason] = {
  ExprKind.ARRAY: Reason.COVERS_ARRAY,
  ExprKind.BLOCK: Reason.COVERS_BLOCK,
  ExprKind.CLOSURE: Reason.COVERS_CLOSURE,
  ExprKind.CONDITIONAL: Reason.COVERS_IF,
  ExprKind.LOOP: Reason.COVERS_LOOP,
  ExprKind.TUPLE: Reason.COVERS_TUPLE,
}

SAFE_CALL_REASONS: Dict[ExprKind, Reason] = {
  ExprKind.CALL: Reason.COVERS_SAFE_CALL,
  ExprKind.METHOD_CALL: Reason.COVERS_SAFE_METHOD_CALL,
}

# Every ExprKind must be covered by exactly one of these.
HANDLED_KINDS = frozenset(ALWAYS_NON_MINIMAL) | frozenset(SAFE_CALL_REASONS) | {ExprKind.OTHER}


def classify_unsafe_block(
  block: Block,
  oracle: SafetyOracle,
  on_unhandled: Optional[UnhandledCallback] = None,
) -> List[Finding]:
  """
  Classifies a user-authored unsafe block.

  Args:
      block: A block whose marker is USER_UNSAFE.
      oracle: Resolves call targets for the call / method call rules.
      on_unhandled: Optional hook invoked with a tail that has no rule.

  Returns:
      List[Finding]: Zero or more findings, all located at the block.
  """
  findings: List[Finding] = []

  if block.stmts:
    findings.append(Finding(location=block.location, reason=Reason.STATEMENTS_COVERED))
  if block.tail is not None:
    reason = classify_tail(block.tail, oracle, on_unhandled)
    if reason is not None:
      findings.append(Finding(location=block.location, reason=reason))

  return findings


def classify_tail(
  tail: Expr,
  oracle: SafetyOracle,
  on_unhandled: Optional[UnhandledCallback] = None,
) -> Optional[Reason]:
  """
  Classifies the tail expression of a block.

  Args:
      tail: The last expression of the block.
      oracle: Resolves call targets.
      on_unhandled: Optional hook invoked when `tail` has no rule.

  Returns:
      The reason the block is not minimal, or None.
  """
  if tail.kind in ALWAYS_NON_MINIMAL:
    return ALWAYS_NON_MINIMAL[tail.kind]

  if tail.kind in SAFE_CALL_REASONS:
    if oracle.resolve_callable_safety(tail) == Safety.SAFE:
      return SAFE_CALL_REASONS[tail.kind]
    return None

  logger.debug(f"Unhandled tail expression {tail.label or tail.kind.value} at {tail.location}")
  if on_unhandled is not None:
    on_unhandled(tail)
  return None
