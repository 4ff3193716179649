"""Tree-walking evaluator for lamb.

Values are Python floats (numbers, booleans as 1/0, pointers) and function values: Closures built from lambdas and
the Builtins of primitives.py. Evaluation is plain structural recursion, so recursion depth in a lamb program is
bounded by the Python stack (see Evaluator.RECURSION_LIMIT).

Two operators do not evaluate their right operand unconditionally:
    - `a * b` is 0 without evaluating b when a is 0, which is what makes the arithmetic conditional
      `(n==0)*1 + (n!=0)*n*fact(n-1)` stop recursing.
    - `a && b` and `a || b` short-circuit, and yield 1 or 0.

Division by zero raises DivisionByZero unless the evaluator was built with ieee_division, in which case it yields
inf or nan with a warning. The `*` short-circuit still applies then: `0 * (1 / 0)` is 0, not nan, and the division
is never evaluated.
"""

import operator
import sys
from contextlib import contextmanager

from lamb.lang import numerical
from lamb.lang.environment import Environment
from lamb.lang.error import ArityMismatch, DivisionByZero, ErrorHandler, RuntimeException, TypeMismatch
from lamb.lang.heap import Heap
from lamb.lang.primitives import Builtin, Console, primitives
from lamb.pure.lexical import Application, Assignment, BinaryOp, Block, Identifier, Lambda, Literal, UnaryOp


class Closure:
    """Function value: parameters and an unevaluated body, plus the index of the frame it was defined in."""

    def __init__(self, params, body, frame, name=None):
        self.params = params
        self.body = body
        self.frame = frame
        self.name = name

    @property
    def arity(self):
        return len(self.params)

    def __repr__(self):
        return f"Closure('{self.name or '<lambda>'}', params={list(self.params)}, frame={self.frame})"

    def __str__(self):
        return f"closure {self.name or '<lambda>'}(" + ", ".join(self.params) + ")"


ARITHMETIC = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
}
COMPARISON = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}
BITWISE = {
    "&": operator.and_,
    "|": operator.or_,
    "^": operator.xor,
}


@contextmanager
def raised_recursion_limit(limit):
    """Raises Python's recursion limit to at least limit for the duration of the block."""
    previous = sys.getrecursionlimit()
    sys.setrecursionlimit(max(previous, limit))
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


class Evaluator:
    """Evaluates Blocks against one heap, one console and one environment arena. Options:
        - ieee_division: division by zero yields inf/nan (with a warning) instead of raising DivisionByZero
        - recursion_limit: Python recursion limit while evaluating
    """
    RECURSION_LIMIT = 10000

    def __init__(self, error_handler=None, heap=None, console=None, ieee_division=False, recursion_limit=None):
        self.error_handler = error_handler if error_handler is not None else ErrorHandler(fatal=False)
        self.heap = heap if heap is not None else Heap()
        self.console = console if console is not None else Console()
        self.environment = Environment(primitives(self.heap, self.console))

        self.ieee_division = ieee_division
        self.recursion_limit = recursion_limit if recursion_limit is not None else Evaluator.RECURSION_LIMIT

        self._dispatch = {
            Literal: self.literal,
            Identifier: self.identifier,
            Lambda: self.function,
            Application: self.application,
            BinaryOp: self.binary,
            UnaryOp: self.unary,
            Block: self.block,
        }

    def run(self, program, frame=Environment.ROOT):
        """Evaluates program (a Block) and returns its value."""
        return self.execute(program, frame)[0]

    def execute(self, program, frame=Environment.ROOT):
        """Evaluates program and returns (value, frame), frame being where program's bindings live. value is None if
        program is a partial block.
        """
        with raised_recursion_limit(self.recursion_limit):
            return self.sequence(program, frame)

    def evaluate(self, node, frame):
        return self._dispatch[type(node)](node, frame)

    def literal(self, node, frame):
        return node.value

    def identifier(self, node, frame):
        return self.environment.lookup(frame, node.name, node.position)

    def function(self, node, frame, name=None):
        return Closure(node.params, node.body, frame, name)

    def block(self, node, frame):
        return self.sequence(node, frame)[0]

    def sequence(self, node, frame):
        """Runs the statements of a Block in order, each assignment extending the frame the next statement sees."""
        statements = node.statements
        idx = 0
        while idx < len(statements):
            group = self.recursive_group(statements, idx, frame)
            if group:
                frame = self.bind_group(group, frame)
                idx += len(group)
                continue

            statement = statements[idx]
            if isinstance(statement, Assignment):
                frame = self.environment.extend(frame, statement.name, self.evaluate(statement.value, frame))
            else:
                self.evaluate(statement.value, frame)
            idx += 1

        if node.result is None:
            return None, frame
        return self.evaluate(node.result, frame), frame

    def recursive_group(self, statements, start, frame):
        """Returns the run of consecutive lambda assignments with distinct names beginning at statements[start]. The run
        ends before any later name already bound as seen from frame: closures earlier in the run keep seeing that
        older binding.
        """
        group = []
        for statement in statements[start:]:
            if not isinstance(statement, Assignment) or not statement.defines_function:
                break
            if any(other.name == statement.name for other in group):
                break
            if group and self.environment.is_bound(frame, statement.name):
                break
            group.append(statement)
        return group

    def bind_group(self, group, frame):
        """Deferred binding: reserves a slot for every name in group, builds each closure against the reserving frame,
        then fills the slots. Closures in a group can call themselves and each other by name.
        """
        frame = self.environment.reserve(frame, [statement.name for statement in group])
        for statement in group:
            closure = self.function(statement.value, frame, statement.name)
            self.environment.fill(frame, statement.name, closure)
        return frame

    def application(self, node, frame):
        callee = self.evaluate(node.callee, frame)
        if not isinstance(callee, (Closure, Builtin)):
            raise TypeMismatch("a function", numerical.describe(callee), node.position)

        args = [self.evaluate(arg, frame) for arg in node.args]
        if len(args) != callee.arity:
            raise ArityMismatch(callee.name or "<lambda>", callee.arity, len(args), node.position)

        if self.error_handler.trace:
            shown = ", ".join(numerical.render(arg) for arg in args)
            self.error_handler.register_step("call", f"{callee.name or '<lambda>'}({shown})")

        if isinstance(callee, Builtin):
            try:
                return callee(*args)
            except RuntimeException as error:
                raise error.locate(node.callee.position, len(callee.name))

        inner = self.environment.bind(callee.frame, callee.params, args)
        return self.block(callee.body, inner)

    def operand(self, node, frame):
        return numerical.number(self.evaluate(node, frame), node.position)

    def binary(self, node, frame):
        op = node.op
        left = self.operand(node.left, frame)

        if op == "*" and left == 0:
            return 0.0
        elif op == "&&" and left == 0:
            return numerical.FALSE
        elif op == "||" and left != 0:
            return numerical.TRUE

        right = self.operand(node.right, frame)

        if op in ARITHMETIC:
            return ARITHMETIC[op](left, right)
        elif op in COMPARISON:
            return numerical.boolean(COMPARISON[op](left, right))
        elif op in ("&&", "||"):
            return numerical.boolean(right != 0)
        elif op in BITWISE:
            return float(BITWISE[op](numerical.integer(left, node.left.position),
                                     numerical.integer(right, node.right.position)))
        elif op == "/":
            return self.divide(left, right, node)

        raise TypeMismatch("a binary operator", f"'{op}'", node.position)

    def divide(self, left, right, node):
        if right != 0:
            return left / right
        if not self.ieee_division:
            raise DivisionByZero(numerical.render(left), node.position)

        quotient = numerical.divide(left, right)
        self.error_handler.warn("division by zero gives {}", numerical.render(quotient), node.position)
        return quotient

    def unary(self, node, frame):
        value = self.operand(node.operand, frame)
        if node.op == "-":
            return -value
        elif node.op == "!":
            return numerical.boolean(value == 0)
        elif node.op == "~":
            return float(~numerical.integer(value, node.operand.position))

        raise TypeMismatch("a unary operator", f"'{node.op}'", node.position)
