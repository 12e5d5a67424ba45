"""
Explain Command Handler.

Prints the documentation of the minimal unsafe block lint.
"""

from rich.syntax import Syntax

from minimal_unsafe.core.lint import MINIMAL_UNSAFE_BLOCK, LintDescriptor
from minimal_unsafe.utils.console import console


def handle_explain(lint: LintDescriptor = MINIMAL_UNSAFE_BLOCK) -> int:
  """
  Renders the lint description.

  Returns:
      int: Always 0.
  """
  console.print(f"[bold]{lint.name}[/bold] ({lint.group}): {lint.summary}\n")
  console.print("[bold]What it does[/bold]")
  console.print(lint.what_it_does + "\n")
  console.print("[bold]Why is this bad?[/bold]")
  console.print(lint.why_is_this_bad + "\n")
  console.print("[bold]Known problems[/bold]")
  console.print(lint.known_problems + "\n")
  console.print("[bold]Example[/bold]")
  console.print(Syntax(lint.example, "python"))
  console.print("[bold]Use instead[/bold]")
  console.print(Syntax(lint.use_instead, "python"))
  return 0
