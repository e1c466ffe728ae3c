"""Binary trie over a sorted integer set, with all levels in one bit vector."""

from __future__ import annotations

import struct
from bisect import bisect_left
from typing import BinaryIO, Iterable, Iterator, Sequence

from bintries.bitvector import BitVector

_HEADER = struct.Struct("<HH??")


def _read_exact(stream: BinaryIO, count: int) -> bytes:
    data = stream.read(count)
    if len(data) != count:
        raise ValueError("unexpected end of stream while reading a trie")
    return data


class FlatBinaryTrie:
    """Each trie node is two bits (left child present, right child present).

    Nodes of every level except the deepest stored one are laid out level by
    level in a single bit vector, so a node's number is its position in
    breadth-first order and its children are found by one rank query.  The
    deepest stored level is kept in a separate vector.  After
    :meth:`encode_runs`, a node written as ``00`` stands for a complete
    subtree, i.e. a run of consecutive integers.
    """

    def __init__(self, values: Iterable[int], universe: int) -> None:
        values = list(values)
        if universe < 2:
            raise ValueError("universe must be at least 2")
        if not values:
            raise ValueError("cannot build a trie over an empty set")
        height = (universe - 1).bit_length()
        if values[0] < 0:
            raise ValueError("values must not be negative")
        if any(a >= b for a, b in zip(values, values[1:])):
            raise ValueError("values must be strictly increasing")
        if values[-1] >= 1 << height:
            raise ValueError(f"value {values[-1]} does not fit in {height} bits")

        ones: list[list[int]] = []
        level_pos: list[int] = []
        nodes = [(0, len(values))]
        for level in range(height):
            shift = height - level - 1
            level_ones: list[int] = []
            children: list[tuple[int, int]] = []
            for k, (lo, hi) in enumerate(nodes):
                threshold = ((values[lo] >> (shift + 1)) << (shift + 1)) | (1 << shift)
                mid = bisect_left(values, threshold, lo, hi)
                if mid > lo:
                    level_ones.append(2 * k)
                    children.append((lo, mid))
                if mid < hi:
                    level_ones.append(2 * k + 1)
                    children.append((mid, hi))
            ones.append(level_ones)
            level_pos.append(2 * len(nodes))
            nodes = children

        self._assign(ones, height, level_pos, runs_encoded=False)

    @classmethod
    def from_values(cls, values: Iterable[int]) -> FlatBinaryTrie:
        """Build a trie just tall enough for the largest value."""
        values = list(values)
        if not values:
            raise ValueError("cannot build a trie over an empty set")
        return cls(values, max(values[-1] + 1, 2))

    @classmethod
    def from_ones(
        cls,
        ones_to_write: Sequence[Sequence[int]],
        height: int,
        level_pos: Sequence[int],
        runs_encoded: bool,
    ) -> FlatBinaryTrie:
        """Build a trie from the one positions and bit count of each level."""
        trie = cls.__new__(cls)
        trie._assign(ones_to_write, height, level_pos, runs_encoded)
        return trie

    def _assign(
        self,
        ones: Sequence[Sequence[int]],
        height: int,
        level_pos: Sequence[int],
        runs_encoded: bool,
    ) -> None:
        if height < 1:
            raise ValueError("trie height must be at least 1")
        if len(ones) != height or len(level_pos) != height:
            raise ValueError("one entry per level is required")
        nonempty = [level for level, size in enumerate(level_pos) if size > 0]
        last = nonempty[-1] if nonempty else 0

        internal = BitVector(sum(level_pos[:last]))
        offset = 0
        for level in range(last):
            for pos in ones[level]:
                if not 0 <= pos < level_pos[level]:
                    raise ValueError(f"position {pos} outside level {level}")
                internal[offset + pos] = 1
            offset += level_pos[level]
        last_bits = BitVector(level_pos[last])
        for pos in ones[last]:
            last_bits[pos] = 1

        self._height = height
        self._internal = internal
        self._last = last_bits
        self.height_with_runs = last + 1
        self.empty_trie = not nonempty
        self.runs_encoded = runs_encoded

    def height(self) -> int:
        return self._height

    def elements_coded(self) -> int:
        """Number of one bits in the deepest stored level."""
        return self._last.count()

    def node(self, node_id: int, level: int) -> int:
        """The two bits of a node as an integer: 0b10 left, 0b01 right."""
        if level < self.height_with_runs - 1:
            bits, pos = self._internal, 2 * node_id
        else:
            bits, pos = self._last, 2 * node_id - len(self._internal)
        return (bits[pos] << 1) | bits[pos + 1]

    def left_child(self, node_id: int, level: int) -> int:
        if level >= self._height - 1:
            return 0
        return self._internal.rank(2 * node_id + 1)

    def right_child(self, node_id: int, level: int) -> int:
        if level >= self._height - 1:
            return 0
        return self._internal.rank(2 * node_id + 2)

    def size_in_bytes(self) -> int:
        """Bytes taken by both bit vectors plus the header fields."""
        return self._internal.size_in_bytes() + self._last.size_in_bytes() + _HEADER.size

    def serialize(self, stream: BinaryIO) -> int:
        """Write the trie to a binary stream and return the bytes written."""
        stream.write(
            _HEADER.pack(self._height, self.height_with_runs, self.empty_trie, self.runs_encoded)
        )
        return _HEADER.size + self._internal.write(stream) + self._last.write(stream)

    @classmethod
    def load(cls, stream: BinaryIO) -> FlatBinaryTrie:
        """Read a trie written by :meth:`serialize`."""
        height, height_with_runs, empty_trie, runs_encoded = _HEADER.unpack(
            _read_exact(stream, _HEADER.size)
        )
        trie = cls.__new__(cls)
        trie._height = height
        trie.height_with_runs = height_with_runs
        trie.empty_trie = empty_trie
        trie.runs_encoded = runs_encoded
        trie._internal = BitVector.read(stream)
        trie._last = BitVector.read(stream)
        return trie

    def _compress(self, ones: list[list[int]], positions: list[int], level: int, node_id: int) -> bool:
        """Rewrite a subtree with complete subtrees collapsed; True if it was complete."""
        node = self.node(node_id, level)
        if level == self._height - 1:
            if node & 0b10:
                ones[level].append(positions[level])
            positions[level] += 1
            if node & 0b01:
                ones[level].append(positions[level])
            positions[level] += 1
            return node == 0b11

        below = level + 1
        if node == 0b11:
            left = self.left_child(node_id, level)
            full_left = self._compress(ones, positions, below, left)
            full_right = self._compress(ones, positions, below, left + 1)
            full = full_left and full_right
            if full:
                positions[below] -= 4
                if level == self._height - 2:
                    del ones[below][-4:]
            else:
                ones[level].extend((positions[level], positions[level] + 1))
            positions[level] += 2
            return full

        if node == 0b10:
            ones[level].append(positions[level])
            self._compress(ones, positions, below, self.left_child(node_id, level))
        positions[level] += 1
        if node == 0b01:
            ones[level].append(positions[level])
            self._compress(ones, positions, below, self.right_child(node_id, level))
        positions[level] += 1
        return False

    def encode_runs(self) -> None:
        """Collapse every complete subtree into a single ``00`` node."""
        ones: list[list[int]] = [[] for _ in range(self._height)]
        positions = [0] * self._height
        self._compress(ones, positions, 0, 0)
        self._assign(ones, self._height, positions, runs_encoded=True)

    def _walk(self, partial: int, node_id: int, level: int, runs: bool) -> Iterator[int]:
        if level == self._height:
            yield partial
            return
        node = self.node(node_id, level)
        if runs and node == 0b00:
            span = (1 << (self._height - level)) - 1
            yield from range(partial, (partial | span) + 1)
            return
        if node & 0b10:
            yield from self._walk(partial, self.left_child(node_id, level), level + 1, runs)
        if node & 0b01:
            right = partial | (1 << (self._height - level - 1))
            yield from self._walk(right, self.right_child(node_id, level), level + 1, runs)

    def decode(self) -> list[int]:
        """The encoded integers in increasing order."""
        if self.runs_encoded:
            if self.empty_trie:
                return []
            return list(self._walk(0, 0, 0, runs=True))
        return list(self._walk(0, 0, 0, runs=False))

    def trie_measure(self) -> int:
        """Number of edges in the trie, i.e. the number of one bits."""
        return self._internal.count() + self._last.count()