"""
Tests for lowering Python sources into the analyzer's tree.

Verifies:
1. Which `with` statements open a user-authored unsafe block.
2. How the last statement of a body becomes the tail expression.
3. Expression kinds of the Python constructs with a dedicated rule.
4. Functions declared unsafe lower to compiler-synthesized blocks.
"""

import pytest

from minimal_unsafe.config import RuntimeConfig
from minimal_unsafe.enums import ExprKind, ScopeMarker
from minimal_unsafe.frontends.python import load_python


@pytest.mark.parametrize(
  "header",
  [
    "with unsafe():",
    "with unsafe:",
    "with mu.unsafe():",
    "with minimal_unsafe.markers.unsafe():",
  ],
)
def test_marker_with_is_unsafe_block(lower, find_unsafe_blocks, header):
  unit, _ = lower(f"{header}\n  f()\n")

  (block,) = find_unsafe_blocks(unit)
  assert block.marker == ScopeMarker.USER_UNSAFE
  assert (block.location.line, block.location.column) == (1, 0)


@pytest.mark.parametrize(
  "header",
  [
    "with unsafe(reason):",
    "with unsafe(), open(p):",
    "with open(p):",
    "with safe():",
  ],
)
def test_other_with_is_not_unsafe_block(lower, find_unsafe_blocks, header):
  """
  Scenario: `with` statements that take arguments, hold several items or use another name.
  Expectation: No unsafe block.
  """
  unit, _ = lower(f"{header}\n  f()\n")

  assert find_unsafe_blocks(unit) == []


def test_as_target_is_allowed(lower, find_unsafe_blocks):
  unit, _ = lower("with unsafe() as u:\n  f(u)\n")

  assert len(find_unsafe_blocks(unit)) == 1


def test_async_with_is_not_unsafe_block(lower, find_unsafe_blocks):
  unit, _ = lower(
    """
    async def g():
      async with unsafe():
        f()
    """
  )
  assert find_unsafe_blocks(unit) == []


def test_custom_markers(find_unsafe_blocks):
  code = "with trusted():\n  f()\nwith unsafe():\n  f()\n"
  unit, _ = load_python(code, "m.py", RuntimeConfig(unsafe_markers=["trusted"]))

  (block,) = find_unsafe_blocks(unit)
  assert block.location.line == 1


@pytest.mark.parametrize(
  "statement, kind",
  [
    ("f()", ExprKind.CALL),
    ("x.m()", ExprKind.METHOD_CALL),
    ("return f()", ExprKind.CALL),
    ("x = [f()]", ExprKind.ARRAY),
    ("x: list = [f()]", ExprKind.ARRAY),
    ("x = y = (f(),)", ExprKind.TUPLE),
    ("x, y = f(), g()", ExprKind.OTHER),
    ("x.a = f()", ExprKind.OTHER),
    ("x[0] = f()", ExprKind.OTHER),
    ("x += f()", ExprKind.OTHER),
    ("raise f()", ExprKind.CALL),
    ("assert f()", ExprKind.CALL),
    ("pass", ExprKind.OTHER),
    ("c = lambda: f()", ExprKind.CLOSURE),
    ("v = f() if c else g()", ExprKind.CONDITIONAL),
    ("v = x.a", ExprKind.OTHER),
  ],
)
def test_tail_of_single_statement(lower, find_unsafe_blocks, statement, kind):
  """
  Scenario: A block holding a single simple statement.
  Expectation: No statements; the tail is the value the statement binds or passes on.
  """
  unit, _ = lower(f"def g(x, c: bool):\n  with unsafe():\n    {statement}\n")

  (block,) = find_unsafe_blocks(unit)
  assert block.stmts == []
  assert block.tail.kind == kind


@pytest.mark.parametrize(
  "body, kind",
  [
    ("if c:\n      f()\n    else:\n      g()", ExprKind.CONDITIONAL),
    ("for i in x:\n      f(i)", ExprKind.OTHER),
    ("for i in range(3):\n      f(i)", ExprKind.OTHER),
    ("while c:\n      f()", ExprKind.LOOP),
    ("with unsafe():\n      f()", ExprKind.BLOCK),
    ("with open(x):\n      f()", ExprKind.OTHER),
    ("try:\n      f()\n    except E:\n      g()", ExprKind.OTHER),
  ],
)
def test_tail_of_compound_statement(lower, find_unsafe_blocks, body, kind):
  unit, _ = lower(f"def g(x, c: bool):\n  with unsafe():\n    {body}\n")

  block = find_unsafe_blocks(unit)[0]
  assert block.stmts == []
  assert block.tail.kind == kind


TRUTH_PRELUDE = """
class Buf:
  @unsafe
  def __iter__(self):
    return iter(())

  @unsafe
  def __bool__(self):
    return False

class Sized:
  def __len__(self):
    return 0

class Shadow(Buf):
  pass

@unsafe
def count() -> int:
  return 0

def g(buf: Buf, sized: Sized, sub: Shadow, n: int, flag: bool, items: "list", other):
  with unsafe():
    {statement}
"""


@pytest.mark.parametrize(
  "statement, kind",
  [
    ("for x in Buf():\n      pass", ExprKind.OTHER),
    ("if buf:\n      pass", ExprKind.OTHER),
    ("if sub:\n      pass", ExprKind.OTHER),
    ("while Buf():\n      pass", ExprKind.OTHER),
    ("v = 1 if buf else 2", ExprKind.OTHER),
    ("if flag and buf:\n      pass", ExprKind.OTHER),
    ("if flag:\n      pass\n    elif buf:\n      pass", ExprKind.OTHER),
    ("if other:\n      pass", ExprKind.OTHER),
    ("if other > 0:\n      pass", ExprKind.OTHER),
    ("if sized:\n      pass", ExprKind.CONDITIONAL),
    ("if not buf:\n      pass", ExprKind.CONDITIONAL),
    ("if buf is None:\n      pass", ExprKind.CONDITIONAL),
    ("if n > 0 and flag:\n      pass", ExprKind.CONDITIONAL),
    ("if len(items):\n      pass", ExprKind.CONDITIONAL),
    ("if count():\n      pass", ExprKind.CONDITIONAL),
    ("while True:\n      pass", ExprKind.LOOP),
    ("while n < 3:\n      pass", ExprKind.LOOP),
    ("v = 1 if items else 2", ExprKind.CONDITIONAL),
  ],
)
def test_truth_tests_decide_conditionals_and_loops(lower, find_unsafe_blocks, statement, kind):
  """
  Scenario: `for` loops and truth tests on objects whose `__iter__`/`__bool__` are declared unsafe.
  Expectation: The statement keeps its rule only when its own protocol calls cannot need the scope.
  """
  unit, _ = lower(TRUTH_PRELUDE.replace("{statement}", statement))

  (block,) = find_unsafe_blocks(unit)
  assert block.tail.kind == kind


def test_opaque_loop_keeps_nested_blocks_reachable(lower, find_unsafe_blocks):
  unit, _ = lower(
    """
    def g(xs):
      with unsafe():
        for x in xs:
          with unsafe():
            f(x)
    """
  )

  outer, inner = find_unsafe_blocks(unit)
  assert outer.tail.kind == ExprKind.OTHER
  assert outer.tail.label == "For"
  assert inner.location.line == 5


def test_earlier_statements_are_statements(lower, find_unsafe_blocks):
  """
  Scenario: `a = 1; b = 2` then a call on the next line.
  Expectation: Small statements on one line count separately.
  """
  unit, _ = lower(
    """
    with unsafe():
      a = 1; b = 2
      f(a, b)
    """
  )

  (block,) = find_unsafe_blocks(unit)
  assert [s.label for s in block.stmts] == ["Assign", "Assign"]
  assert block.tail.kind == ExprKind.CALL


def test_nested_blocks_in_statements_are_reachable(lower, find_unsafe_blocks):
  unit, _ = lower(
    """
    def g(c):
      with unsafe():
        if c:
          with unsafe():
            f()
        h()
    """
  )

  outer, inner = find_unsafe_blocks(unit)
  assert [s.label for s in outer.stmts] == ["If"]
  assert inner.location.line == 5


@pytest.mark.parametrize(
  "decorators",
  ["@unsafe", "@unsafe()", "@staticmethod\n@mu.unsafe"],
)
def test_unsafe_function_body_is_synthesized(lower, find_unsafe_blocks, decorators):
  """
  Scenario: A function declared unsafe.
  Expectation: Its body is a compiler-synthesized block, not an authored one.
  """
  unit, _ = lower(f"{decorators}\ndef g():\n  a = f()\n  return a\n")

  assert find_unsafe_blocks(unit) == []
  func = unit.root.block.tail
  assert func.label == "FunctionDef"
  (body,) = func.children
  assert body.block.marker == ScopeMarker.COMPILER_SYNTHESIZED
  assert len(body.block.stmts) == 1


def test_plain_function_body_is_plain(lower):
  unit, _ = lower("def g():\n  a = f()\n  return a\n")

  (body,) = unit.root.block.tail.children
  assert body.block.marker == ScopeMarker.NONE


def test_expression_shapes(lower, find_unsafe_blocks):
  """
  Scenario: A method call whose receiver is itself a call chain.
  Expectation: The receiver is the first child, the method name is kept.
  """
  unit, _ = lower("with unsafe():\n  A().b(1).c(f())\n")

  tail = find_unsafe_blocks(unit)[0].tail
  assert tail.kind == ExprKind.METHOD_CALL
  assert tail.method_name == "c"
  receiver, arg = tail.children
  assert receiver.kind == ExprKind.METHOD_CALL
  assert receiver.method_name == "b"
  assert arg.kind == ExprKind.CALL
  assert arg.callee.label == "Name"


def test_lambda_callee_lowered_as_closure(lower, find_unsafe_blocks):
  unit, _ = lower("with unsafe():\n  (lambda x: f(x))(0)\n")

  tail = find_unsafe_blocks(unit)[0].tail
  assert tail.kind == ExprKind.CALL
  assert tail.callee.kind == ExprKind.CLOSURE


def test_unsupported_expression_keeps_node_name(lower, find_unsafe_blocks):
  unit, _ = lower("with unsafe():\n  a + b\n")

  tail = find_unsafe_blocks(unit)[0].tail
  assert tail.kind == ExprKind.OTHER
  assert tail.label == "BinaryOperation"


def test_empty_module():
  unit, _ = load_python("", "empty.py")

  assert unit.root.block.stmts == []
  assert unit.root.block.tail is None
