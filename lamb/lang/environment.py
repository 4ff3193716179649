"""Environments for lamb: an arena of frames addressed by index.

A frame maps names to values and points at its parent frame by index. Frames are never changed once built, with
exactly one exception: a slot reserved by `reserve` is filled once by `fill`. That is how a closure gets to call
itself by name: the slot for its name is reserved first, the closure is built against the reserving frame, and the
slot is then filled with the finished closure.

Binding a name always makes a new child frame, so a closure that captured a frame keeps seeing the bindings it was
defined with, whatever is bound after it.
"""

from lamb.lang.error import GenericException, UnboundIdentifier


class Unfilled:
    """Marker for a reserved slot that has not been filled yet."""

    def __repr__(self):
        return "<unfilled>"


UNFILLED = Unfilled()


class Frame:
    """One scope: a name: value mapping plus the index of the enclosing frame (None for the root)."""
    __slots__ = ("bindings", "parent")

    def __init__(self, bindings, parent):
        self.bindings = bindings
        self.parent = parent

    def __repr__(self):
        return f"Frame({list(self.bindings)}, parent={self.parent})"


class Environment:
    """Arena of Frames. Frame 0 is the root and holds the builtins."""
    ROOT = 0

    def __init__(self, builtins=None):
        self.frames = [Frame(dict(builtins or {}), None)]

    def _push(self, bindings, parent):
        self.frames.append(Frame(bindings, parent))
        return len(self.frames) - 1

    def lookup(self, frame, name, position=None):
        """Returns the innermost value bound to name as seen from frame. Raises UnboundIdentifier."""
        index = frame
        while index is not None:
            current = self.frames[index]
            if name in current.bindings:
                value = current.bindings[name]
                if value is UNFILLED:
                    raise UnboundIdentifier(name, position, reason="is used before its definition is complete")
                return value
            index = current.parent
        raise UnboundIdentifier(name, position)

    def extend(self, frame, name, value):
        """Returns a new child frame of frame binding name to value."""
        return self._push({name: value}, frame)

    def bind(self, frame, names, values):
        """Returns a new child frame of frame binding each of names to the matching value (function parameters)."""
        return self._push(dict(zip(names, values)), frame)

    def reserve(self, frame, names):
        """Returns a new child frame of frame holding an unfilled slot for each of names."""
        return self._push({name: UNFILLED for name in names}, frame)

    def fill(self, frame, name, value):
        """Fills the reserved slot name in frame. A slot can only be filled once."""
        bindings = self.frames[frame].bindings
        if bindings.get(name) is not UNFILLED:
            raise GenericException("'{}' is not an unfilled slot", name, internal=True)
        bindings[name] = value

    def names(self, frame):
        """Returns every name visible from frame, innermost binding first."""
        seen = []
        index = frame
        while index is not None:
            for name in self.frames[index].bindings:
                if name not in seen:
                    seen.append(name)
            index = self.frames[index].parent
        return seen

    def is_bound(self, frame, name):
        """Whether or not name is bound (filled or not) as seen from frame."""
        index = frame
        while index is not None:
            if name in self.frames[index].bindings:
                return True
            index = self.frames[index].parent
        return False
