"""lamb interpreter.

lamb is a small functional language: numbers are its only data (booleans are 1 and 0, pointers are heap indices),
functions are closures over lexical scope, and a handful of builtins expose a manually managed heap and a byte
console. Basic program flow:
    1. Scanner: turns source text into tokens (see lamb/pure/scanner.py)
    2. Parser: builds an immutable syntax tree from the tokens (see lamb/pure/parser.py and lamb/pure/lexical.py)
        - the whole program is one block: statements separated by ",", ending with its result expression
    3. Evaluator: walks the tree with an environment arena and a heap (see lamb/lang/evaluator.py)
        - errors are lamb exceptions, reported by ErrorHandler (see lamb/lang/error.py)

"""

__version__ = "0.1.0"
