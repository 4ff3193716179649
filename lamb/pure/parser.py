"""Recursive-descent parser for lamb. The whole program is one top-level Block.

Operator precedence, loosest first (all binary operators associate to the left):

```
\\ params . body        lambda, extends as far right as possible
||                      logical or, short-circuits
&&                      logical and, short-circuits
|   ^   &               bitwise, on truncated integers
==  !=                  equality
<   <=  >   >=          comparison
+   -
*   /                   * skips its right operand when the left one is 0
!   -   ~               unary
f(args)                 application
```

Statements of a block are separated by ",". Lambda bodies need one more rule, because a "," after a lambda body
could either continue the body or separate the enclosing statement from its next sibling:

    - if a ";" lies ahead at the same parenthesis depth (and no enclosing body at that depth already owns it), with
      no `, name = \\` function definition at that depth before it, the body is a *terminated* block: any
      statements, ending at that ";". The ";" also separates the lambda's statement from the next one in the
      enclosing block.
    - otherwise the body is *open*: assignments each followed by ",", then one trailing expression, and the body
      ends right there.

So `x = 1, f = \\.x, x = 2, f()` is a four statement program, while in `show = \\c. _put(c), _put(\\n); show('A')`
both effects belong to show. A ";" goes to the latest function defined at its depth, so in
`sq = \\x. x * x, show = \\c. _put(c), _put(\\n); show(sq(3))` only show is terminated. A helper function local to
a terminated body goes first in that body, or is parenthesized: `g = (\\y. y)`. The rule lives in Parser.body, so it
can be changed without touching anything else.
"""

from lamb.lang.error import ParseError
from lamb.pure.lexical import (Application, Assignment, BinaryOp, Block, Evaluation, Identifier, Lambda, Literal,
                               UnaryOp)
from lamb.pure.scanner import TokenType, tokenize


BINARY_LEVELS = [
    ("||",),
    ("&&",),
    ("|",),
    ("^",),
    ("&",),
    ("==", "!="),
    ("<", "<=", ">", ">="),
    ("+", "-"),
    ("*", "/"),
]
UNARY = ("!", "-", "~")


class Parser:
    """Builds a Block from a list of Tokens ending in EOF. If partial, the top-level block may end with an assignment
    (used by the interactive shell, where bindings outlive the line that made them).
    """

    def __init__(self, tokens, partial=False):
        self.tokens = tokens
        self.partial = partial
        self.pos = 0

        self.depth = 0        # current parenthesis depth
        self.claimed = set()  # depths at which a terminated lambda body owns the next ";"

    # token helpers

    def peek(self, ahead=0):
        return self.tokens[min(self.pos + ahead, len(self.tokens) - 1)]

    def previous(self):
        return self.tokens[self.pos - 1] if self.pos else None

    def advance(self):
        token = self.peek()
        if token.kind is not TokenType.EOF:
            self.pos += 1
        return token

    def check(self, kind, *values):
        token = self.peek()
        return token.kind is kind and (not values or token.value in values)

    def expect(self, kind, expected=None):
        """Consumes and returns the next token if it is of type kind, raises ParseError otherwise."""
        token = self.peek()
        if token.kind is not kind:
            self.fail(expected or describe_kind(kind))
        return self.advance()

    def fail(self, expected):
        token = self.peek()
        raise ParseError(token.position, expected, token.describe(), length=max(len(token.text), 1))

    # blocks

    def parse(self):
        """Returns the program's top-level Block. Raises ParseError."""
        block = self.sequence(TokenType.EOF, partial=self.partial)
        self.expect(TokenType.EOF)
        return block

    def sequence(self, closer, partial=False):
        """Parses statements separated by "," up to (not including) a closer token. A trailing "," is allowed."""
        position = self.peek().position
        statements = []

        while True:
            statements.append(self.statement())
            if self.check(closer):
                break

            after_body = self.previous().kind is TokenType.SEMICOLON
            if not after_body:
                self.expect(TokenType.COMMA, f"',' or {describe_kind(closer)}")
            elif self.check(TokenType.COMMA):
                self.advance()

            if self.check(closer):
                break

        return self.block(statements, position, partial)

    def block(self, statements, position, partial=False):
        """Splits statements into a Block's statements and its trailing result expression."""
        last = statements[-1]
        if isinstance(last, Evaluation):
            return Block(tuple(statements[:-1]), last.value, position)
        if partial:
            return Block(tuple(statements), None, position)
        raise ParseError(last.position, "a trailing expression", f"assignment to '{last.name}'", len(last.name))

    def statement(self):
        if self.check(TokenType.NAME) and self.peek(1).kind is TokenType.ASSIGN:
            return self.assignment()
        position = self.peek().position
        return Evaluation(self.expression(), position)

    def assignment(self):
        name = self.expect(TokenType.NAME)
        self.expect(TokenType.ASSIGN)
        return Assignment(name.value, self.expression(), name.position)

    def body(self):
        """Parses a lambda body, which is either terminated by ";" or open (see module docstring)."""
        if not self.terminator_ahead():
            return self.open_body()

        self.claimed.add(self.depth)
        try:
            body = self.sequence(TokenType.SEMICOLON)
        finally:
            self.claimed.discard(self.depth)

        self.expect(TokenType.SEMICOLON)
        return body

    def terminator_ahead(self):
        """Whether or not an unclaimed ";" comes before the enclosing parentheses (or the input) end, and before the
        next function definition at this depth.
        """
        if self.depth in self.claimed:
            return False

        depth = 0
        for idx in range(self.pos, len(self.tokens)):
            token = self.tokens[idx]
            if token.kind is TokenType.LPAREN:
                depth += 1
            elif token.kind is TokenType.RPAREN:
                if depth == 0:
                    return False
                depth -= 1
            elif depth == 0 and token.kind is TokenType.SEMICOLON:
                return True
            elif depth == 0 and token.kind is TokenType.COMMA and self.definition_at(idx + 1):
                return False
        return False

    def definition_at(self, idx):
        """Whether or not the tokens from idx on start a function definition (name = \\ ...)."""
        kinds = [token.kind for token in self.tokens[idx:idx + 3]]
        return kinds == [TokenType.NAME, TokenType.ASSIGN, TokenType.LAMBDA]

    def open_body(self):
        position = self.peek().position
        statements = []
        while self.check(TokenType.NAME) and self.peek(1).kind is TokenType.ASSIGN:
            statements.append(self.assignment())
            self.expect(TokenType.COMMA)
        return Block(tuple(statements), self.expression(), position)

    # expressions

    def expression(self):
        if self.check(TokenType.LAMBDA):
            return self.function()
        return self.binary(0)

    def function(self):
        token = self.expect(TokenType.LAMBDA)

        params = []
        while not self.check(TokenType.PERIOD):
            param = self.expect(TokenType.NAME, "a parameter name or '.'")
            if param.value in params:
                raise ParseError(param.position, "distinct parameter names", f"'{param.value}' twice", len(param.text))
            params.append(param.value)

            if self.check(TokenType.COMMA):
                self.advance()
                if not self.check(TokenType.NAME):
                    self.fail("a parameter name")

        self.expect(TokenType.PERIOD)
        return Lambda(tuple(params), self.body(), token.position)

    def binary(self, level):
        if level == len(BINARY_LEVELS):
            return self.unary()

        left = self.binary(level + 1)
        while self.check(TokenType.OPERATOR, *BINARY_LEVELS[level]):
            op = self.advance()
            right = self.binary(level + 1)
            left = BinaryOp(op.value, left, right, op.position)
        return left

    def unary(self):
        if self.check(TokenType.OPERATOR, *UNARY):
            op = self.advance()
            return UnaryOp(op.value, self.unary(), op.position)
        return self.application()

    def application(self):
        node = self.primary()
        while self.check(TokenType.LPAREN):
            paren = self.advance()
            self.depth += 1

            args = []
            if not self.check(TokenType.RPAREN):
                args.append(self.expression())
                while self.check(TokenType.COMMA):
                    self.advance()
                    args.append(self.expression())

            self.expect(TokenType.RPAREN, "',' or ')'")
            self.depth -= 1
            node = Application(node, tuple(args), paren.position)
        return node

    def primary(self):
        token = self.peek()

        if token.kind in (TokenType.NUMBER, TokenType.CHAR):
            self.advance()
            return Literal(token.value, token.position)

        elif token.kind is TokenType.NAME:
            self.advance()
            return Identifier(token.value, token.position)

        elif token.kind is TokenType.LPAREN:
            self.advance()
            self.depth += 1
            node = self.expression()
            self.expect(TokenType.RPAREN, "')'")
            self.depth -= 1
            return node

        self.fail("an expression")


def describe_kind(kind):
    """Returns how a token of type kind is referred to in parse errors."""
    if kind is TokenType.EOF:
        return "end of input"
    if kind is TokenType.NAME:
        return "a name"
    return f"'{KIND_TEXT[kind]}'"


KIND_TEXT = {
    TokenType.LAMBDA: "\\",
    TokenType.PERIOD: ".",
    TokenType.COMMA: ",",
    TokenType.SEMICOLON: ";",
    TokenType.LPAREN: "(",
    TokenType.RPAREN: ")",
    TokenType.ASSIGN: "=",
    TokenType.NUMBER: "number",
    TokenType.CHAR: "character",
    TokenType.OPERATOR: "operator",
}


def parse(tokens, partial=False):
    """Returns the top-level Block of tokens. Raises ParseError."""
    return Parser(tokens, partial).parse()


def parse_source(source, partial=False):
    """Tokenizes and parses source. Raises LexError or ParseError."""
    return parse(tokenize(source), partial)
