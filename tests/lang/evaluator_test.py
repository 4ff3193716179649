import io
import math
import unittest

from lamb.lang.error import (ArityMismatch, DivisionByZero, ErrorHandler, MemoryAccessError, TypeMismatch,
                             UnboundIdentifier)
from lamb.lang.evaluator import Closure, Evaluator
from lamb.lang.primitives import Console
from lamb.pure.parser import parse_source


def evaluate(source, stdin=b"", error_handler=None, **options):
    """Returns (value, console output) of running source on a fresh evaluator."""
    stdout = io.BytesIO()
    if error_handler is None:
        error_handler = ErrorHandler(fatal=False, echo=False)
    evaluator = Evaluator(error_handler, console=Console(io.BytesIO(stdin), stdout), **options)
    return evaluator.run(parse_source(source)), stdout.getvalue()


def value(source, **options):
    return evaluate(source, **options)[0]


class EvaluatorTestCase(unittest.TestCase):

    def test_operators(self):
        cases = {
            "1 + 2 * 3": 7, "7 / 2": 3.5, "-3 + 1": -2, "10 - 2 - 3": 5, "'H'": 72,
            "2 == 2": 1, "2 != 2": 0, "3 < 4": 1, "4 <= 3": 0, "4 > 3": 1, "3 >= 3": 1,
            "!0": 1, "!5": 0, "!!7": 1,
            "6 & 3": 2, "6 | 3": 7, "6 ^ 3": 5, "~0": -1, "7.9 & 3": 3,
            "1 && 0": 0, "2 && 3": 1, "0 || 2": 1, "0 || 0": 0,
            "(1 == 1) * 10 + (1 != 1) * 20": 10,
        }
        for case, result in cases.items():
            self.assertEqual(result, value(case), case)

    def test_blocks(self):
        cases = {
            "1, 2, 3": 3,
            "x = 2, y = x * 3, y + x": 8,
            "x = 1, x = x + 1, x": 2,
            "f = \\x. y = x * 2, y + 1, f(3)": 7,
        }
        for case, result in cases.items():
            self.assertEqual(result, value(case), case)

    def test_lexical_scoping(self):
        cases = {
            "x = 1, f = \\.x, x = 2, f()": 1,
            "x = 1, f = \\x. x, f(5) + x": 6,
            "make = \\x. \\y. x + y, add2 = make(2), add2(3)": 5,
            "make = \\x. \\y. x + y, add2 = make(2), add9 = make(9), add2(0) * 100 + add9(0)": 209,
            "twice = \\f x. f(f(x)), inc = \\n. n + 1, twice(inc, 5)": 7,
            "x = 1, f = \\.x, x = \\.2, f()": 1,
            "g = \\.1, h = 0, f = \\.g(), g = \\.2, f()": 1,
            "g = \\.1, f = \\.g(), g = \\.f() + 1, g()": 2,
        }
        for case, result in cases.items():
            self.assertEqual(result, value(case), case)

    def test_recursion(self):
        cases = {
            "fact = \\n.(n==0)*1 + (n!=0)*n*fact(n-1), fact(5)": 120,
            "fib = \\n. (n < 2) * n + (n >= 2) * (fib(n - 1) + fib(n - 2)), fib(15)": 610,
            "count = \\n. (n > 0) * count(n - 1) + (n == 0) * 7, count(300)": 7,
        }
        for case, result in cases.items():
            self.assertEqual(result, value(case), case)

    def test_mutual_recursion(self):
        source = ("even = \\n. (n == 0) + (n != 0) * odd(n - 1),"
                  "odd = \\n. (n != 0) * even(n - 1),"
                  "even({}) * 10 + odd({})")
        self.assertEqual(10, value(source.format(10, 10)))
        self.assertEqual(1, value(source.format(7, 7)))

    def test_short_circuit(self):
        result, output = evaluate("0 * _put('A'), 1 || _put('B'), 0 && _put('C'), 1 * _put('D'), 1 && _put('E')")
        self.assertEqual(1, result)
        self.assertEqual(b"DE", output)

    def test_console(self):
        result, output = evaluate("show = \\c. _put(c), _put(\\n); show('H'), show('i'), 0")
        self.assertEqual(0, result)
        self.assertEqual(b"H\ni\n", output)

        result, output = evaluate("sq = \\x. x * x, show = \\c. _put(c), _put(\\n); show(sq(3) + 62)")
        self.assertEqual(10, result)
        self.assertEqual(b"G\n", output)

        result, output = evaluate("echo = \\. c = _get(), (c != -1) * (_put(c) + echo()); echo()", stdin=b"hey")
        self.assertEqual(b"hey", output)

    def test_get_at_end_of_input(self):
        source = "a = _get(), b = _get(), c = _get(), (a == 65) && (b == -1) && (c == -1)"
        self.assertEqual(1, value(source, stdin=b"A"))

    def test_heap(self):
        cases = {
            "p = _alloc(4), _store(p, 'H'), _load(p)": 72,
            "p = _alloc(2), _store(p, 5), _store(p + 1, 6), q = _realloc(p, 4), _load(q) * 10 + _load(q + 1)": 56,
            "p = _alloc(2), q = _realloc(p, 4), _load(q + 3)": 0,
            "p = _alloc(3), _free(p) == p": 1,
            "p = _alloc(1), q = p + 100, 3": 3,
            "p = _alloc(1), f = \\. p, _store(f(), 9), _load(p)": 9,
        }
        for case, result in cases.items():
            self.assertEqual(result, value(case), case)

    def test_builtins_are_values(self):
        result, output = evaluate("p = _put, p('x')")
        self.assertEqual(120, result)
        self.assertEqual(b"x", output)

        closure = value("id = \\x. x, id")
        self.assertIsInstance(closure, Closure)
        self.assertEqual("closure id(x)", str(closure))

    def test_errors(self):
        should_fail = {
            "y + 1": UnboundIdentifier,
            "f = \\. z, f()": UnboundIdentifier,
            "add = \\a, b. a + b, add(1)": ArityMismatch,
            "f = \\. 1, f(2)": ArityMismatch,
            "_get(1)": ArityMismatch,
            "1(2)": TypeMismatch,
            "f = \\.1, f + 1": TypeMismatch,
            "f = \\.1, f == f": TypeMismatch,
            "-_put": TypeMismatch,
            "_store(_put, 1)": TypeMismatch,
            "1 / 0": DivisionByZero,
            "x = 0, 5 / x": DivisionByZero,
            "_load(_alloc(1) + 100)": MemoryAccessError,
            "p = _alloc(1), _free(p), _free(p)": MemoryAccessError,
            "_alloc(-1)": MemoryAccessError,
        }
        for case, error in should_fail.items():
            self.assertRaises(error, evaluate, case)

    def test_error_details(self):
        with self.assertRaises(ArityMismatch) as context:
            evaluate("add = \\a, b. a + b, add(1)")
        self.assertEqual(("add", 2, 1), (context.exception.name, context.exception.expected, context.exception.got))

        with self.assertRaises(UnboundIdentifier) as context:
            evaluate("x = 1,\nx + y")
        self.assertEqual("y", context.exception.name)
        self.assertEqual((2, 5), (context.exception.position.line, context.exception.position.column))

        with self.assertRaises(MemoryAccessError) as context:
            evaluate("_load(7)")
        self.assertEqual(1, context.exception.position.column)

    def test_output_before_error_stays(self):
        stdout = io.BytesIO()
        evaluator = Evaluator(ErrorHandler(fatal=False, echo=False), console=Console(io.BytesIO(), stdout))
        self.assertRaises(UnboundIdentifier, evaluator.run, parse_source("_put('o'), _put('k'), oops"))
        self.assertEqual(b"ok", stdout.getvalue())

    def test_ieee_division(self):
        stream = io.StringIO()
        error_handler = ErrorHandler(fatal=False, stream=stream)

        self.assertEqual(math.inf, value("1 / 0", error_handler=error_handler, ieee_division=True))
        self.assertEqual(-math.inf, value("-1 / 0", error_handler=error_handler, ieee_division=True))
        self.assertTrue(math.isnan(value("0 / 0", error_handler=error_handler, ieee_division=True)))
        self.assertIn("warning", stream.getvalue())
        self.assertEqual([], error_handler.diagnostics)

    def test_multiplication_skips_division(self):
        stream = io.StringIO()
        error_handler = ErrorHandler(fatal=False, stream=stream)

        self.assertEqual(0, value("0 * (1 / 0)", error_handler=error_handler, ieee_division=True))
        self.assertEqual(0, value("0 * (1 / 0)"))
        self.assertEqual("", stream.getvalue())

    def test_trace(self):
        stream = io.StringIO()
        error_handler = ErrorHandler(fatal=False, trace=True, stream=stream)

        value("f = \\x. x, f(2) + _load(_alloc(1))", error_handler=error_handler)
        trace = stream.getvalue()
        self.assertIn("f(2)", trace)
        self.assertIn("_alloc(1)", trace)
        self.assertIn("_load(0)", trace)

    def test_deterministic(self):
        source = "fib = \\n. (n < 2) * n + (n >= 2) * (fib(n - 1) + fib(n - 2)), p = _alloc(2), _put('a'), fib(10) + p"
        self.assertEqual(evaluate(source), evaluate(source))

    def test_persistent_frame(self):
        evaluator = Evaluator(ErrorHandler(fatal=False, echo=False), console=Console(io.BytesIO(), io.BytesIO()))

        result, frame = evaluator.execute(parse_source("sq = \\x. x * x", partial=True))
        self.assertIsNone(result)
        result, frame = evaluator.execute(parse_source("sq(9)", partial=True), frame)
        self.assertEqual(81, result)


if __name__ == '__main__':
    unittest.main()
