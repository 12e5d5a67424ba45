from .check import handle_check
from .explain import handle_explain

__all__ = [
  "handle_check",
  "handle_explain",
]
