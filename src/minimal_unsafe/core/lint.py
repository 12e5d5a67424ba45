"""
Lint metadata for the minimal unsafe block check.
"""

from pydantic import BaseModel, Field


class LintDescriptor(BaseModel):
  """Identity and documentation of a lint, as shown by `minimal-unsafe explain`."""

  name: str
  group: str = Field(description="Host lint group, e.g. 'restriction'.")
  summary: str
  what_it_does: str
  why_is_this_bad: str
  known_problems: str
  example: str
  use_instead: str


MINIMAL_UNSAFE_BLOCK = LintDescriptor(
  name="minimal_unsafe_block",
  group="restriction",
  summary="`unsafe` blocks that cover more code than necessary",
  what_it_does="Detects unsafe blocks that cover more code than necessary, obscuring which operations are actually unsafe.",
  why_is_this_bad=(
    "An unsafe block states that all safety requirements inside it are met. "
    "When it covers more than the operations that need it, it is unclear which parts "
    "of the code need extra care, and any safety comment attached to it loses precision."
  ),
  known_problems=(
    "Minimality is not guaranteed. The check is conservative: false positives are bugs, "
    "with the drawback of an unknown amount of false negatives."
  ),
  example="""\
with unsafe():
    x = make_value()
    y = x.unwrap_unchecked()
""",
  use_instead="""\
x = make_value()
with unsafe():
    y = x.unwrap_unchecked()
""",
)
