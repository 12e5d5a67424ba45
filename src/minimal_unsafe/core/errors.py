"""
Exceptions raised by the host layers.

The classifier itself never raises: unresolved targets and unknown expression
kinds are data conditions. Only input that a host cannot turn into a tree ends
up here.
"""


class AnalysisError(ValueError):
  """
  Raised when a source unit cannot be lowered for analysis.

  Attributes:
      path (str): The unit that failed.
  """

  def __init__(self, path: str, message: str):
    super().__init__(f"{path}: {message}")
    self.path = path
