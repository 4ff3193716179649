"""lamb abstract syntax tree.

The parser produces a tree of these nodes; the evaluator reads it and never changes it. Every node is a frozen
dataclass, so trees are immutable once built and compare structurally (source positions are ignored when comparing).

Informally, the language they describe is

```
<block>      ::= (<statement> ",")* <expr>            ; result of a block is its trailing expression
<statement>  ::= <name> "=" <expr>                    ; "assignment": binds once, never reassigned
               | <expr>                               ; "evaluation": run for its effects, value discarded
<expr>       ::= "\\" <name>* "." <block>             ; "lambda": extends as far right as possible
               | <expr> "(" <expr>* ")"               ; "application": arguments separated by ","
               | <expr> <binop> <expr> | <unop> <expr>
               | <number> | <char> | <name> | "(" <expr> ")"
```

See parser.py for precedence and for how a lambda body decides where it ends.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Tuple

from lamb.lang.numerical import render
from lamb.pure.scanner import Position


class Node(ABC):
    """Superclass that represents any node of a lamb syntax tree."""

    @property
    def _cls(self):
        return type(self).__name__

    @property
    @abstractmethod
    def expr(self):
        """Source-like text of this node. Only used for display and error messages."""

    @property
    def nodes(self):
        """Child nodes, in evaluation order."""
        return []

    def display(self, indents=0):
        """Recursively displays syntax tree with readable format.

        Format:
        <Node>(expr='<expr>', nodes=[
            <Node>(expr='<expr>', nodes=[
                ...
                <Node>(expr='<expr>')  # <-- if nodes is empty
            ])
        ])
        """
        result = f"{'    ' * indents}{self._cls}(expr='{self.expr}'"
        if self.nodes:
            result += ", nodes=["
            for node in self.nodes:
                result += "\n" + node.display(indents + 1) + ","
            result = result[:-1] + f"\n{'    ' * indents}]"
        return result + ")"

    def __repr__(self):
        return f"{self._cls}('{self.expr}')"

    def __str__(self):
        return self.display()


def _grouped(node):
    """Returns node.expr, parenthesized if node would bind looser than an operand."""
    if isinstance(node, (BinaryOp, Lambda)):
        return f"({node.expr})"
    return node.expr


@dataclass(frozen=True, repr=False)
class Literal(Node):
    """Numeric constant. Character literals are desugared to their code."""
    value: float
    position: Optional[Position] = field(default=None, compare=False)

    @property
    def expr(self):
        return render(self.value)


@dataclass(frozen=True, repr=False)
class Identifier(Node):
    name: str
    position: Optional[Position] = field(default=None, compare=False)

    @property
    def expr(self):
        return self.name


@dataclass(frozen=True, repr=False)
class Block(Node):
    """Ordered statements followed by one trailing result expression. result is only None for a partial block (an
    interactive line that ends with an assignment).
    """
    statements: Tuple["Statement", ...]
    result: Optional[Node]
    position: Optional[Position] = field(default=None, compare=False)

    @property
    def expr(self):
        parts = [statement.expr for statement in self.statements]
        if self.result is not None:
            parts.append(self.result.expr)
        return ", ".join(parts)

    @property
    def nodes(self):
        return list(self.statements) + ([self.result] if self.result is not None else [])


@dataclass(frozen=True, repr=False)
class Lambda(Node):
    params: Tuple[str, ...]
    body: Block
    position: Optional[Position] = field(default=None, compare=False)

    @property
    def expr(self):
        head = "\\" + ", ".join(self.params) + ". "
        if self.body.statements:
            return head + self.body.expr + ";"
        return head + self.body.expr

    @property
    def nodes(self):
        return [self.body]


@dataclass(frozen=True, repr=False)
class Application(Node):
    callee: Node
    args: Tuple[Node, ...]
    position: Optional[Position] = field(default=None, compare=False)

    @property
    def expr(self):
        callee = self.callee.expr if isinstance(self.callee, (Identifier, Application)) else f"({self.callee.expr})"
        return callee + "(" + ", ".join(arg.expr for arg in self.args) + ")"

    @property
    def nodes(self):
        return [self.callee] + list(self.args)


@dataclass(frozen=True, repr=False)
class BinaryOp(Node):
    op: str
    left: Node
    right: Node
    position: Optional[Position] = field(default=None, compare=False)

    @property
    def expr(self):
        return f"{_grouped(self.left)} {self.op} {_grouped(self.right)}"

    @property
    def nodes(self):
        return [self.left, self.right]


@dataclass(frozen=True, repr=False)
class UnaryOp(Node):
    op: str
    operand: Node
    position: Optional[Position] = field(default=None, compare=False)

    @property
    def expr(self):
        return self.op + _grouped(self.operand)

    @property
    def nodes(self):
        return [self.operand]


class Statement(Node):
    """Superclass for the statements of a Block."""


@dataclass(frozen=True, repr=False)
class Assignment(Statement):
    """name = value. Binds name once in a new frame; later assignments to the same name shadow, never overwrite."""
    name: str
    value: Node
    position: Optional[Position] = field(default=None, compare=False)

    @property
    def expr(self):
        return f"{self.name} = {self.value.expr}"

    @property
    def nodes(self):
        return [self.value]

    @property
    def defines_function(self):
        """Whether or not this assignment binds a lambda, and therefore needs a deferred binding."""
        return isinstance(self.value, Lambda)


@dataclass(frozen=True, repr=False)
class Evaluation(Statement):
    """An expression evaluated for its effects (console, heap) in the middle of a block."""
    value: Node
    position: Optional[Position] = field(default=None, compare=False)

    @property
    def expr(self):
        return self.value.expr

    @property
    def nodes(self):
        return [self.value]
