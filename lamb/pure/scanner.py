"""Lexical scanning for lamb: turns source text into a list of Tokens for the parser.

Token rules are tried in order at every position, so longer operators must come before their prefixes:

```
<comment>   ::= "#" <char>*                    ; to end of line, discarded
<number>    ::= <digit>+ ("." <digit>+)?       ; no exponents, no leading "."
<char>      ::= "'" <char> "'"                 ; value is the character's code
              | "'" "\\" ("n"|"t"|"r"|"0"|"\\"|"'") "'"
              | "\\n"                          ; only directly before ")", as in _put(\n)
<operator>  ::= "==" | "!=" | "<=" | ">=" | "&&" | "||"
              | "+" | "-" | "*" | "/" | "<" | ">" | "!" | "~" | "&" | "|" | "^"
<punct>     ::= "\\" | "." | "," | ";" | "(" | ")" | "="
<name>      ::= ("_" | <letter>) ("_" | <letter> | <digit>)*
```

Anywhere else a bare `\\n` is a lambda taking n: `f(\\n, m. n + m)` passes a two-parameter function. The quoted
form `'\\n'` is the newline code everywhere.

Scanning does not stop at the first bad character: every error is collected, and the first one is raised with the
rest attached so they can all be reported in one go.
"""

import bisect
import re
from dataclasses import dataclass, field
from enum import Enum, auto

from lamb.lang.error import LexError


class TokenType(Enum):
    """lamb token types."""
    NAME = auto()
    NUMBER = auto()
    CHAR = auto()
    OPERATOR = auto()

    LAMBDA = auto()     # \
    PERIOD = auto()     # .
    COMMA = auto()      # ,
    SEMICOLON = auto()  # ;
    LPAREN = auto()     # (
    RPAREN = auto()     # )
    ASSIGN = auto()     # =

    EOF = auto()


@dataclass(frozen=True)
class Position:
    """Line and column (both 1-based) plus absolute offset of a token in its source."""
    line: int
    column: int
    offset: int = field(default=0, compare=False)

    def __str__(self):
        return f"line {self.line}, column {self.column}"


@dataclass(frozen=True)
class Token:
    """A single token. value is the name for NAME, a float for NUMBER and CHAR, and the source text otherwise."""
    kind: TokenType
    value: object
    position: Position
    text: str = ""

    def describe(self):
        """Returns a short human-readable description, used in parse errors."""
        if self.kind is TokenType.EOF:
            return "end of input"
        return f"'{self.text}'"

    def __repr__(self):
        return f"Token({self.kind.name}, {self.value!r}, {self.position.line}:{self.position.column})"


PUNCTUATION = {
    "\\": TokenType.LAMBDA,
    ".": TokenType.PERIOD,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "=": TokenType.ASSIGN,
}

ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "\\": "\\", "'": "'"}

RULES = [
    ("SKIP", r"\#[^\n]*|\s+"),
    ("NUMBER", r"\d+(?:\.\d+)?"),
    ("CHAR", r"'(?:\\.|[^'\\\n])'"),
    ("NEWLINE", r"\\n(?=\s*\))"),
    ("BAD_CHAR", r"'[^'\n]*'?"),
    ("OPERATOR", r"==|!=|<=|>=|&&|\|\||[-+*/<>!~&|^]"),
    ("PUNCT", r"[\\.,;()=]"),
    ("NAME", r"[A-Za-z_]\w*"),
    ("ERROR", r"\S"),
]
PATTERN = re.compile("|".join(f"(?P<{name}>{regex})" for name, regex in RULES), re.ASCII)


class Scanner:
    """Tokenizes lamb source code."""

    def __init__(self, source):
        self.source = source
        self.line_starts = [0] + [match.end() for match in re.finditer("\n", source)]

        self.tokens = []
        self.errors = []

    def position(self, offset):
        """Returns the Position of offset in self.source."""
        line = bisect.bisect_right(self.line_starts, offset)
        return Position(line, offset - self.line_starts[line - 1] + 1, offset)

    def error(self, offset, reason, text=""):
        self.errors.append(LexError(self.position(offset), reason, text))

    def scan(self):
        """Returns the list of tokens for self.source, ending with an EOF token. Raises the first LexError found."""
        for match in PATTERN.finditer(self.source):
            kind, text, start = match.lastgroup, match.group(), match.start()

            if kind == "SKIP":
                continue
            elif kind == "NUMBER":
                self.number(text, start, match.end())
            elif kind == "CHAR":
                self.char(text, start)
            elif kind == "NEWLINE":
                self.add(TokenType.CHAR, float(ord("\n")), start, text)
            elif kind == "BAD_CHAR":
                if len(text) > 1 and text.endswith("'"):
                    self.error(start, "character literal must hold exactly one character", text)
                else:
                    self.error(start, "unterminated character literal", text)
            elif kind == "OPERATOR":
                self.add(TokenType.OPERATOR, text, start, text)
            elif kind == "PUNCT":
                self.add(PUNCTUATION[text], text, start, text)
            elif kind == "NAME":
                self.add(TokenType.NAME, text, start, text)
            else:
                self.error(start, "unrecognized character", text)

        self.add(TokenType.EOF, None, len(self.source))

        if self.errors:
            first, *others = self.errors
            first.others = others
            raise first
        return self.tokens

    def add(self, kind, value, offset, text=""):
        self.tokens.append(Token(kind, value, self.position(offset), text))

    def number(self, text, start, end):
        # digits running straight into a name, or into a "." with no digit after it, are never valid
        following = self.source[end:end + 2]
        if following and (following[0].isalnum() or following[0] == "_" or following == "." or
                          (following[0] == "." and not following[1].isdigit())):
            tail = re.match(r"[\w.]*", self.source[end:], re.ASCII).group()
            self.error(start, "malformed number", text + tail)
        else:
            self.add(TokenType.NUMBER, float(text), start, text)

    def char(self, text, start):
        body = text[1:-1]
        if body.startswith("\\"):
            if body[1] not in ESCAPES:
                self.error(start, "unknown escape in character literal", text)
                return
            body = ESCAPES[body[1]]
        self.add(TokenType.CHAR, float(ord(body)), start, text)


def tokenize(source):
    """Returns the list of Tokens in source. Raises LexError."""
    return Scanner(source).scan()
