"""
Data structures representing the output of an analysis pass.

This module defines the `Finding` and `AnalysisResult` Pydantic models, which
encapsulate the diagnostics produced for a unit, any host errors encountered,
and maintainer-only coverage counters.
"""

from typing import Dict, List

from pydantic import BaseModel, Field

from minimal_unsafe.core.hir import Location
from minimal_unsafe.enums import Reason


class Finding(BaseModel):
  """
  A single (location, reason) diagnostic emitted by the classifier.
  """

  location: Location = Field(description="Position of the offending unsafe block.")
  reason: Reason = Field(description="Why the block is not minimal.")

  @property
  def message(self) -> str:
    """The exact diagnostic text for the reason."""
    return self.reason.message

  def __str__(self) -> str:
    return f"{self.location}: {self.message}"


class AnalysisResult(BaseModel):
  """
  Container for the results of analyzing one unit.
  """

  path: str = Field(description="The analyzed unit.")
  findings: List[Finding] = Field(default_factory=list, description="Findings in traversal order.")
  errors: List[str] = Field(default_factory=list, description="Host errors (parse failures etc).")
  success: bool = Field(default=True, description="False if the unit could not be lowered.")
  blocks_checked: int = Field(default=0, description="Number of user-authored unsafe blocks classified.")
  unhandled: Dict[str, int] = Field(
    default_factory=dict,
    description="Host node labels of tail expressions that fell back to the conservative branch.",
  )

  @property
  def has_findings(self) -> bool:
    """
    Check if the unit produced any finding.

    Returns:
        True if one or more findings are present.
    """
    return len(self.findings) > 0
