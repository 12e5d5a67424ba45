"""
Runtime Configuration Store.

The analysis core has a single toggle (`enabled`). The remaining fields tune the
Python host: which names mark unsafe scopes, and which decorators leave a
function's declared safety intact.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib

DEFAULT_TRANSPARENT_DECORATORS = [
  "staticmethod",
  "classmethod",
  "abstractmethod",
  "abc.abstractmethod",
  "cache",
  "functools.cache",
  "lru_cache",
  "functools.lru_cache",
  "override",
  "typing.override",
  "typing_extensions.override",
  "dataclass",
  "dataclasses.dataclass",
]


class RuntimeConfig(BaseModel):
  """
  Global configuration container for the analysis.
  """

  enabled: bool = Field(True, description="If False, the minimal unsafe block check produces nothing.")
  unsafe_markers: List[str] = Field(
    default_factory=lambda: ["unsafe"],
    description="Names recognised as the unsafe context manager and decorator (Python host).",
  )
  transparent_decorators: List[str] = Field(
    default_factory=lambda: list(DEFAULT_TRANSPARENT_DECORATORS),
    description="Decorators that do not hide a function's declared safety (Python host).",
  )

  @field_validator("unsafe_markers")
  @classmethod
  def validate_markers(cls, v: List[str]) -> List[str]:
    """
    Ensures marker names are bare identifiers.

    Args:
        v (List[str]): Raw marker names.

    Returns:
        List[str]: The stripped names.

    Raises:
        ValueError: If a marker is empty or dotted.
    """
    cleaned = [m.strip() for m in v]
    for marker in cleaned:
      if not marker.isidentifier():
        raise ValueError(f"Invalid unsafe marker: '{marker}'. Expected a bare identifier such as 'unsafe'.")
    return cleaned

  @field_validator("transparent_decorators")
  @classmethod
  def validate_decorators(cls, v: List[str]) -> List[str]:
    return [d.strip() for d in v if d.strip()]

  def is_marker(self, dotted_name: str) -> bool:
    """
    Checks whether a (possibly dotted) name refers to an unsafe marker.

    `pkg.unsafe` matches the marker `unsafe`.

    Args:
        dotted_name (str): A flattened Name/Attribute chain.

    Returns:
        bool: True if the last segment is a configured marker.
    """
    if not dotted_name:
      return False
    return dotted_name.split(".")[-1] in self.unsafe_markers

  @classmethod
  def load(
    cls,
    enabled: Optional[bool] = None,
    unsafe_markers: Optional[List[str]] = None,
    transparent_decorators: Optional[List[str]] = None,
    search_path: Optional[Path] = None,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and overrides with CLI arguments.

    Args:
        enabled (Optional[bool]): Override for the check toggle.
        unsafe_markers (Optional[List[str]]): Override for marker names.
        transparent_decorators (Optional[List[str]]): Override for transparent decorators.
        search_path (Optional[Path]): Directory to start searching for TOML config.

    Returns:
        RuntimeConfig: The fully resolved configuration object.
    """
    start_dir = search_path or Path.cwd()
    toml_config, _ = _load_toml_settings(start_dir)

    if enabled is not None:
      final_enabled = enabled
    else:
      final_enabled = toml_config.get("enabled", True)

    final_markers = unsafe_markers or toml_config.get("unsafe_markers", ["unsafe"])

    final_decorators = list(DEFAULT_TRANSPARENT_DECORATORS)
    if transparent_decorators is not None:
      final_decorators = transparent_decorators
    elif "transparent_decorators" in toml_config:
      final_decorators = toml_config["transparent_decorators"]

    # Extra decorators extend the defaults rather than replacing them.
    final_decorators = final_decorators + list(toml_config.get("extra_transparent_decorators", []))

    return cls(
      enabled=final_enabled,
      unsafe_markers=final_markers,
      transparent_decorators=final_decorators,
    )


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches `start_path` and its parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The `[tool.minimal_unsafe]` table and the
      directory it was found in. An unreadable file yields an empty table.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.exists() and toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except (OSError, tomllib.TOMLDecodeError):
        return {}, None

      tool_section = data.get("tool", {})
      return tool_section.get("minimal_unsafe", {}), parent

  return {}, None
