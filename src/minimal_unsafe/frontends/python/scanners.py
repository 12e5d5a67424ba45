"""
Small LibCST helpers shared by the Python host.
"""

from typing import List, Union

import libcst as cst


def get_full_name(node: cst.CSTNode) -> str:
  """
  Recursively resolves a CST Name or Attribute chain to a dot-separated string.

  Args:
    node: Typically a `cst.Name` (e.g., `x`) or `cst.Attribute` (e.g., `x.y`).

  Returns:
    str: The dotted name (e.g., "functools.lru_cache"), or an empty string if
    the node is not a plain Name/Attribute chain.

  Example:
    >>> get_full_name(cst.Attribute(value=cst.Name("functools"), attr=cst.Name("cache")))
    'functools.cache'
  """
  if isinstance(node, cst.Name):
    return node.value
  elif isinstance(node, cst.Attribute):
    base = get_full_name(node.value)
    if not base:
      return ""
    return f"{base}.{node.attr.value}"
  return ""


def decorator_name(decorator: cst.Decorator) -> str:
  """
  Flattens a decorator to its dotted name, looking through a call.

  `@lru_cache(maxsize=2)` and `@lru_cache` both give "lru_cache".
  """
  expr = decorator.decorator
  if isinstance(expr, cst.Call):
    expr = expr.func
  return get_full_name(expr)


def bound_names(target: cst.BaseExpression) -> List[str]:
  """
  Collects the names bound by an assignment target.

  Attribute and subscript targets bind nothing in the enclosing scope.
  """
  if isinstance(target, cst.Name):
    return [target.value]
  if isinstance(target, (cst.Tuple, cst.List)):
    names: List[str] = []
    for element in target.elements:
      names.extend(bound_names(element.value))
    return names
  if isinstance(target, cst.StarredElement):
    return bound_names(target.value)
  return []


def string_annotation(node: Union[cst.SimpleString, cst.ConcatenatedString]) -> str:
  """Returns the text of a quoted forward reference, or "" if it is not a plain string."""
  value = node.evaluated_value
  if isinstance(value, str):
    return value.strip()
  return ""
