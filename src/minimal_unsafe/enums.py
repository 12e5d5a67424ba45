"""
Enumerations for minimal-unsafe.

This module defines the closed vocabularies shared by the hosts, the safety
oracle and the classifier.
"""

from enum import Enum


class ScopeMarker(str, Enum):
  """
  Scoping marker carried by every block.

  ``COMPILER_SYNTHESIZED`` blocks come from desugaring other constructs (e.g. the
  body of a function declared unsafe) and were never authored as a safety boundary.
  """

  NONE = "none"
  USER_UNSAFE = "user_unsafe"
  COMPILER_SYNTHESIZED = "compiler_synthesized"


class ExprKind(str, Enum):
  """
  Expression kinds relevant to classification.

  Host kinds without a dedicated member are lowered to ``OTHER``.
  """

  ARRAY = "array"
  BLOCK = "block"
  CLOSURE = "closure"
  CONDITIONAL = "conditional"
  LOOP = "loop"
  TUPLE = "tuple"
  CALL = "call"
  METHOD_CALL = "method_call"
  OTHER = "other"


class Safety(str, Enum):
  """
  Verdict of the safety oracle for a call site.

  ``UNKNOWN`` must be treated exactly like ``UNSAFE`` by callers.
  """

  SAFE = "safe"
  UNSAFE = "unsafe"
  UNKNOWN = "unknown"


_MESSAGE_PREFIX = "this unsafe block is not minimal as "


class Reason(str, Enum):
  """
  Why an unsafe block is not minimal.
  """

  STATEMENTS_COVERED = "statements_covered"
  COVERS_ARRAY = "covers_array"
  COVERS_BLOCK = "covers_block"
  COVERS_CLOSURE = "covers_closure"
  COVERS_IF = "covers_if"
  COVERS_LOOP = "covers_loop"
  COVERS_TUPLE = "covers_tuple"
  COVERS_SAFE_CALL = "covers_safe_call"
  COVERS_SAFE_METHOD_CALL = "covers_safe_method_call"

  @property
  def message(self) -> str:
    """The user-facing diagnostic text."""
    return _MESSAGE_PREFIX + _REASON_TAILS[self]


_REASON_TAILS = {
  Reason.STATEMENTS_COVERED: "it covers statements",
  Reason.COVERS_ARRAY: "it covers unnecessarily an array",
  Reason.COVERS_BLOCK: "it covers unnecessarily a block",
  Reason.COVERS_CLOSURE: "it covers unnecessarily a closure",
  Reason.COVERS_IF: "it covers unnecessarily an `if` block",
  Reason.COVERS_LOOP: "it covers unnecessarily a `loop` block",
  Reason.COVERS_TUPLE: "it covers unnecessarily a tuple",
  Reason.COVERS_SAFE_CALL: "it covers unnecessarily a safe call",
  Reason.COVERS_SAFE_METHOD_CALL: "it covers unnecessarily a safe method call",
}
