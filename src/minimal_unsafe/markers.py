"""
Runtime markers for Python code checked by minimal-unsafe.

`unsafe` works both as a context manager delimiting an unsafe block and as a
decorator declaring a function unsafe to call::

    from minimal_unsafe.markers import unsafe

    @unsafe
    def read_raw(buf, offset):
        ...

    with unsafe():
        value = read_raw(buf, 0)

At runtime the marker does nothing; it only carries intent for the analyzer.
"""

from typing import Any, Callable, Optional, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

UNSAFE_ATTRIBUTE = "__minimal_unsafe__"


class _UnsafeMarker:
  def __call__(self, fn: Optional[F] = None) -> Any:
    if fn is None:
      return self
    setattr(fn, UNSAFE_ATTRIBUTE, True)
    return fn

  def __enter__(self) -> "_UnsafeMarker":
    return self

  def __exit__(self, exc_type, exc, tb) -> bool:
    return False

  def __repr__(self) -> str:
    return "unsafe"


unsafe = _UnsafeMarker()


def is_declared_unsafe(fn: Callable[..., Any]) -> bool:
  """Checks whether `fn` was decorated with `@unsafe` at runtime."""
  return bool(getattr(fn, UNSAFE_ATTRIBUTE, False))
