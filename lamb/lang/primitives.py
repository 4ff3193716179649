"""The seven builtins of lamb and the console they talk to.

| Name            | Result                                     | Effect                                  |
|-----------------|--------------------------------------------|-----------------------------------------|
| `_put(c)`       | c                                          | writes the byte int(c) & 0xFF           |
| `_get()`        | next input byte, -1 once input is finished | consumes one byte                       |
| `_alloc(s)`     | pointer to s cells, all 0                  |                                         |
| `_realloc(p,s)` | pointer to s cells, prefix of p kept       | block at p is freed if it had to move   |
| `_free(p)`      | p                                          | block at p becomes reusable             |
| `_store(p,v)`   | v                                          | cell p holds v                          |
| `_load(p)`      | value of cell p                            |                                         |

Builtins are bound in the root environment and applied like any closure, arity checks included.
"""

import io
import sys

from lamb.lang import numerical


class Console:
    """Byte-oriented console. stdin and stdout default to the process's streams, looked up at use time; binary and
    text streams are both accepted (text streams are read and written as latin-1).
    """

    def __init__(self, stdin=None, stdout=None):
        self.stdin = stdin
        self.stdout = stdout
        self.exhausted = False  # once input ends, _get keeps returning -1 without reading again

    def _output(self):
        if self.stdout is not None:
            return self.stdout
        sys.stdout.flush()  # keep text already printed ahead of raw bytes
        return getattr(sys.stdout, "buffer", sys.stdout)

    def _input(self):
        if self.stdin is not None:
            return self.stdin
        return getattr(sys.stdin, "buffer", sys.stdin)

    def put(self, byte):
        stream = self._output()
        if isinstance(stream, io.TextIOBase):
            stream.write(chr(byte))
        else:
            stream.write(bytes([byte]))

    def get(self):
        """Returns the next input byte, or -1 at end of input."""
        if self.exhausted:
            return -1

        self.flush()  # a prompt written before reading should be visible
        data = self._input().read(1)
        if not data:
            self.exhausted = True
            return -1
        return ord(data) if isinstance(data, str) else data[0]

    def flush(self):
        stream = self.stdout if self.stdout is not None else sys.stdout
        stream.flush()
        if self.stdout is None and hasattr(sys.stdout, "buffer"):
            sys.stdout.buffer.flush()


class Builtin:
    """A function value whose body is a host operation instead of a Block."""

    def __init__(self, name, params, operation):
        self.name = name
        self.params = tuple(params)
        self.operation = operation

    @property
    def arity(self):
        return len(self.params)

    def __call__(self, *args):
        return self.operation(*args)

    def __repr__(self):
        return f"Builtin('{self.name}')"

    def __str__(self):
        return f"builtin {self.name}"


def primitives(heap, console):
    """Returns the builtins operating on heap and console, keyed by name."""

    def put(c):
        console.put(numerical.integer(c) & 0xFF)
        return c

    def get():
        return float(console.get())

    def alloc(size):
        return float(heap.alloc(numerical.number(size)))

    def realloc(pointer, size):
        return float(heap.realloc(numerical.number(pointer), numerical.number(size)))

    def free(pointer):
        heap.free_block(numerical.number(pointer))
        return pointer

    def store(pointer, value):
        return heap.store(numerical.number(pointer), value)

    def load(pointer):
        return heap.load(numerical.number(pointer))

    builtins = [
        Builtin("_put", ["c"], put),
        Builtin("_get", [], get),
        Builtin("_alloc", ["s"], alloc),
        Builtin("_realloc", ["p", "s"], realloc),
        Builtin("_free", ["p"], free),
        Builtin("_store", ["p", "v"], store),
        Builtin("_load", ["p"], load),
    ]
    return {builtin.name: builtin for builtin in builtins}
