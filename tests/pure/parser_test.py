import dataclasses
import unittest

from lamb.lang.error import LexError, ParseError
from lamb.pure.lexical import (Application, Assignment, BinaryOp, Block, Evaluation, Identifier, Lambda, Literal,
                               UnaryOp)
from lamb.pure.parser import parse_source
from lamb.pure.scanner import Position


def I(name):
    return Identifier(name)


def N(value):
    return Literal(float(value))


def call(callee, *args):
    return Application(I(callee) if isinstance(callee, str) else callee, tuple(args))


class ParserTestCase(unittest.TestCase):

    def test_precedence(self):
        cases = {
            "1 + 2 * 3": BinaryOp("+", N(1), BinaryOp("*", N(2), N(3))),
            "1 - 2 - 3": BinaryOp("-", BinaryOp("-", N(1), N(2)), N(3)),
            "(1 + 2) * 3": BinaryOp("*", BinaryOp("+", N(1), N(2)), N(3)),
            "a == b + 1": BinaryOp("==", I("a"), BinaryOp("+", I("b"), N(1))),
            "!a * -b": BinaryOp("*", UnaryOp("!", I("a")), UnaryOp("-", I("b"))),
            "--a": UnaryOp("-", UnaryOp("-", I("a"))),
            "a || b && c": BinaryOp("||", I("a"), BinaryOp("&&", I("b"), I("c"))),
            "a < b == c > d": BinaryOp("==", BinaryOp("<", I("a"), I("b")), BinaryOp(">", I("c"), I("d"))),
            "a & b | c ^ d": BinaryOp("|", BinaryOp("&", I("a"), I("b")), BinaryOp("^", I("c"), I("d"))),
            "-f(x)": UnaryOp("-", call("f", I("x"))),
            "f(x)(y)": call(call("f", I("x")), I("y")),
            "f(a, b + 1)": call("f", I("a"), BinaryOp("+", I("b"), N(1))),
            "f()": call("f"),
            "'H'": N(72),
        }
        for case, result in cases.items():
            self.assertEqual(Block((), result), parse_source(case), case)

    def test_lambda(self):
        cases = {
            "\\x. x": Lambda(("x",), Block((), I("x"))),
            "\\a, b. a + b": Lambda(("a", "b"), Block((), BinaryOp("+", I("a"), I("b")))),
            "\\a b. a": Lambda(("a", "b"), Block((), I("a"))),
            "\\. 1": Lambda((), Block((), N(1))),
            "\\x. \\y. x": Lambda(("x",), Block((), Lambda(("y",), Block((), I("x"))))),
            "\\x. y = x * 2, y + 1": Lambda(("x",), Block((Assignment("y", BinaryOp("*", I("x"), N(2))),),
                                                          BinaryOp("+", I("y"), N(1)))),
            "(\\x. x)(2)": call(Lambda(("x",), Block((), I("x"))), N(2)),
        }
        for case, result in cases.items():
            self.assertEqual(Block((), result), parse_source(case), case)

    def test_open_body_ends_after_its_expression(self):
        program = parse_source("x = 1, f = \\.x, x = 2, f()")
        statements = (Assignment("x", N(1)), Assignment("f", Lambda((), Block((), I("x")))), Assignment("x", N(2)))
        self.assertEqual(Block(statements, call("f")), program)

    def test_terminated_body(self):
        program = parse_source("show = \\c. _put(c), _put(\\n); show('A'), show('B')")
        body = Block((Evaluation(call("_put", I("c"))),), call("_put", N(10)))
        statements = (Assignment("show", Lambda(("c",), body)), Evaluation(call("show", N(65))))
        self.assertEqual(Block(statements, call("show", N(66))), program)

        # the ";" separates, so a "," after it is optional
        self.assertEqual(program, parse_source("show = \\c. _put(c), _put(\\n);, show('A'), show('B')"))

    def test_terminated_body_inside_arguments(self):
        program = parse_source("f(\\x. _put(x), x;, 2)")
        body = Block((Evaluation(call("_put", I("x"))),), I("x"))
        self.assertEqual(Block((), call("f", Lambda(("x",), body), N(2))), program)

    def test_semicolon_belongs_to_latest_definition(self):
        identity = Lambda(("y",), Block((), I("y")))

        program = parse_source("f = \\x. x, g = \\y. y; g(1)")
        statements = (Assignment("f", Lambda(("x",), Block((), I("x")))), Assignment("g", identity))
        self.assertEqual(Block(statements, call("g", N(1))), program)

        program = parse_source("sq = \\x. x * x, show = \\c. _put(c), _put(\\n); show(sq(3) + 62)")
        show = Lambda(("c",), Block((Evaluation(call("_put", I("c"))),), call("_put", N(10))))
        statements = (Assignment("sq", Lambda(("x",), Block((), BinaryOp("*", I("x"), I("x"))))),
                      Assignment("show", show))
        self.assertEqual(Block(statements, call("show", BinaryOp("+", call("sq", N(3)), N(62)))), program)

    def test_helper_inside_terminated_body(self):
        # first in the body, the helper's own body stays open
        program = parse_source("f = \\x. g = \\y. y, g(x); f(1)")
        body = Block((Assignment("g", Lambda(("y",), Block((), I("y")))),), call("g", I("x")))
        self.assertEqual(Block((Assignment("f", Lambda(("x",), body)),), call("f", N(1))), program)

        program = parse_source("f = \\x. a = x, g = (\\y. y), g(a); f(1)")
        body = Block((Assignment("a", I("x")), Assignment("g", Lambda(("y",), Block((), I("y")))),),
                     call("g", I("a")))
        self.assertEqual(Block((Assignment("f", Lambda(("x",), body)),), call("f", N(1))), program)

    def test_separators(self):
        cases = {
            "1, 2": Block((Evaluation(N(1)),), N(2)),
            "1, 2,": Block((Evaluation(N(1)),), N(2)),
            "x = 1,\ny = x,\n\nx + y": Block((Assignment("x", N(1)), Assignment("y", I("x"))),
                                             BinaryOp("+", I("x"), I("y"))),
        }
        for case, result in cases.items():
            self.assertEqual(result, parse_source(case), case)

    def test_partial(self):
        self.assertEqual(Block((Assignment("x", N(1)),), None), parse_source("x = 1", partial=True))
        self.assertEqual(Block((), N(1)), parse_source("1", partial=True))
        self.assertRaises(ParseError, parse_source, "x = 1")

    def test_errors(self):
        should_fail = ["", "x = ", "1 +", "(1", "f(1, )", "f(1", "\\x x. x", "\\x", "\\x,. x", "1 2", "a; b",
                       "x = 1, y = 2", ")", "= 1", "1 = 2", "1,,2", "f(\\x. x"]
        for case in should_fail:
            self.assertRaises(ParseError, parse_source, case)

        self.assertRaises(LexError, parse_source, "x = 1 @ 2")

    def test_error_details(self):
        with self.assertRaises(ParseError) as context:
            parse_source("f(1 2)")
        error = context.exception

        self.assertEqual("',' or ')'", error.expected)
        self.assertEqual("'2'", error.found)
        self.assertEqual(Position(1, 5), error.position)

        with self.assertRaises(ParseError) as context:
            parse_source("1 +")
        self.assertEqual("end of input", context.exception.found)


class LexicalTestCase(unittest.TestCase):

    def test_expr(self):
        cases = {
            "1 + 2 * 3": "1 + (2 * 3)",
            "f(x, 'A')": "f(x, 65)",
            "\\a, b. a": "\\a, b. a",
            "(\\x. x)(2)": "(\\x. x)(2)",
            "!(a == b)": "!(a == b)",
            "2.5": "2.5",
            "x = 1, x": "x = 1, x",
        }
        for case, result in cases.items():
            self.assertEqual(result, parse_source(case).expr, case)

    def test_display(self):
        self.assertEqual("Literal(expr='1')", N(1).display())
        self.assertEqual("BinaryOp(expr='a + 1', nodes=[\n    Identifier(expr='a'),\n    Literal(expr='1')\n])",
                         BinaryOp("+", I("a"), N(1)).display())
        self.assertEqual("BinaryOp('a + 1')", repr(BinaryOp("+", I("a"), N(1))))

    def test_positions_do_not_affect_equality(self):
        self.assertEqual(parse_source("a+1"), parse_source("\n  a  +  1"))
        self.assertEqual(Position(2, 3), parse_source("\n  a  +  1").result.left.position)

    def test_immutable(self):
        node = N(1)
        with self.assertRaises(dataclasses.FrozenInstanceError):
            node.value = 2.0

    def test_defines_function(self):
        program = parse_source("f = \\x. x, y = 1, y", partial=True)
        self.assertEqual([True, False], [statement.defines_function for statement in program.statements])


if __name__ == '__main__':
    unittest.main()
