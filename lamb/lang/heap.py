"""Flat, manually managed memory for lamb programs.

The heap is a growable list of cells addressed by index; a pointer is just a number used as an index. Two side
tables keep track of blocks: `blocks` maps the start of every live block to its size, and `free` is the list of
reusable (start, size) runs, sorted by start, with neighbours always coalesced.

Addresses are only checked when they are dereferenced (`load`, `store`, `free`, `realloc`), so pointer arithmetic is
ordinary number arithmetic. `load` and `store` check heap bounds, not liveness, just like raw pointers.
"""

import bisect
import math

from lamb.lang.error import MemoryAccessError


class Heap:
    """First-fit allocator over a growable cell list."""

    def __init__(self):
        self.cells = []
        self.blocks = {}  # start: size of live blocks
        self.free = []    # (start, size) of free runs, sorted by start

    @staticmethod
    def _whole(value, what):
        """Returns value as an int if it is a whole number, raises MemoryAccessError otherwise."""
        if not isinstance(value, (int, float)) or not math.isfinite(value) or value != int(value):
            raise MemoryAccessError(f"{what} must be a whole number", value)
        return int(value)

    def _size(self, size):
        size = self._whole(size, "size")
        if size < 0:
            raise MemoryAccessError("negative size", size)
        return max(size, 1)  # zero-size blocks still get a unique start

    def _address(self, pointer):
        address = self._whole(pointer, "address")
        if not 0 <= address < len(self.cells):
            raise MemoryAccessError("address outside of the heap", address)
        return address

    def _live(self, pointer):
        address = self._whole(pointer, "address")
        if address not in self.blocks:
            if any(start <= address < start + size for start, size in self.free):
                raise MemoryAccessError("block was already freed", address)
            raise MemoryAccessError("address is not the start of a live block", address)
        return address

    def alloc(self, size):
        """Returns the start of a fresh block of size cells, all 0. The first free run that is large enough is reused
        (its remainder stays free); otherwise the heap grows.
        """
        size = self._size(size)

        for idx, (start, length) in enumerate(self.free):
            if length >= size:
                if length == size:
                    del self.free[idx]
                else:
                    self.free[idx] = (start + size, length - size)
                self.cells[start:start + size] = [0.0] * size
                break
        else:
            start = len(self.cells)
            self.cells.extend([0.0] * size)

        self.blocks[start] = size
        return start

    def free_block(self, pointer):
        """Makes the live block starting at pointer reusable."""
        address = self._live(pointer)
        self._release(address, self.blocks.pop(address))

    def _release(self, start, size):
        """Adds the run (start, size) to the free list, merging it with free neighbours."""
        idx = bisect.bisect_left(self.free, (start, size))

        if idx < len(self.free) and self.free[idx][0] == start + size:
            size += self.free.pop(idx)[1]
        if idx > 0 and sum(self.free[idx - 1]) == start:
            start, previous = self.free.pop(idx - 1)
            size += previous
            idx -= 1

        self.free.insert(idx, (start, size))

    def realloc(self, pointer, size):
        """Returns a block of size cells holding the first min(old size, size) cells of the block at pointer. Shrinking
        happens in place and frees the tail; growing moves the block.
        """
        old = self.size_of(pointer)
        address = self._whole(pointer, "address")
        size = self._size(size)

        if size <= old:
            self.blocks[address] = size
            if size < old:
                self._release(address + size, old - size)
            return address

        moved = self.alloc(size)
        self.cells[moved:moved + old] = self.cells[address:address + old]
        self.free_block(address)
        return moved

    def load(self, pointer):
        return self.cells[self._address(pointer)]

    def store(self, pointer, value):
        self.cells[self._address(pointer)] = value
        return value

    def size_of(self, pointer):
        """Returns the recorded size of the live block starting at pointer."""
        return self.blocks[self._live(pointer)]

    def __repr__(self):
        return f"Heap(cells={len(self.cells)}, live={len(self.blocks)}, free={self.free})"
