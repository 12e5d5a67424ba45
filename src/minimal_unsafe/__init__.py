"""
minimal-unsafe Package.

A static analyzer that flags unsafe scopes covering more code than the
operations that actually need them.

Usage
-----

Simple String Check
^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    import minimal_unsafe as mu
    code = '''
    with unsafe():
        x = make()
        y = x.unwrap_unchecked()
    '''
    for finding in mu.check(code):
        print(finding)
    # <string>:2:0: this unsafe block is not minimal as it covers statements

Advanced Usage (Engine)
^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from minimal_unsafe import LintEngine, RuntimeConfig

    engine = LintEngine(config=RuntimeConfig(unsafe_markers=["unsafe", "trusted"]))
    result = engine.run_file(Path("src/module.py"))
    if not result.success:
        print(result.errors)
"""

from typing import List, Optional

from minimal_unsafe.config import RuntimeConfig
from minimal_unsafe.core.engine import LintEngine
from minimal_unsafe.core.finding import AnalysisResult, Finding
from minimal_unsafe.enums import Reason

__version__ = "0.1.0"


def check(code: str, path: str = "<string>", config: Optional[RuntimeConfig] = None) -> List[Finding]:
  """
  Checks a string of Python code for non-minimal unsafe blocks.

  Args:
      code (str): The source code.
      path (str): Name used in finding locations.
      config (RuntimeConfig, optional): Runtime configuration.

  Returns:
      List[Finding]: Findings in source order.

  Raises:
      ValueError: If the code does not parse.
  """
  result = LintEngine(config=config).run(code, path)
  if not result.success:
    raise ValueError("\n".join(result.errors))
  return result.findings


__all__ = [
  "AnalysisResult",
  "Finding",
  "LintEngine",
  "Reason",
  "RuntimeConfig",
  "check",
  "__version__",
]
