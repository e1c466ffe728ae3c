"""Binary trie over a sorted integer set, stored as one bit vector per level."""

from __future__ import annotations

import struct
from bisect import bisect_left
from typing import BinaryIO, Iterable, Iterator

from bintries.bitvector import BitVector

_HEADER = struct.Struct("<HH??")


def _read_exact(stream: BinaryIO, count: int) -> bytes:
    data = stream.read(count)
    if len(data) != count:
        raise ValueError("unexpected end of stream while reading a trie")
    return data


class LevelBinaryTrie:
    """Each trie node is two bits (left child present, right child present).

    Nodes of one level are stored left to right in that level's bit vector;
    the children of a node are found by rank on its level.  After
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

        levels: list[BitVector] = []
        nodes = [(0, len(values))]
        for level in range(height):
            shift = height - level - 1
            bits = BitVector(2 * len(nodes))
            children: list[tuple[int, int]] = []
            for k, (lo, hi) in enumerate(nodes):
                threshold = ((values[lo] >> (shift + 1)) << (shift + 1)) | (1 << shift)
                mid = bisect_left(values, threshold, lo, hi)
                if mid > lo:
                    bits[2 * k] = 1
                    children.append((lo, mid))
                if mid < hi:
                    bits[2 * k + 1] = 1
                    children.append((mid, hi))
            levels.append(bits)
            nodes = children

        self._levels = levels
        self.height_with_runs = height
        self.empty_trie = False
        self.runs_encoded = False

    @classmethod
    def from_values(cls, values: Iterable[int]) -> LevelBinaryTrie:
        """Build a trie just tall enough for the largest value."""
        values = list(values)
        if not values:
            raise ValueError("cannot build a trie over an empty set")
        return cls(values, max(values[-1] + 1, 2))

    @classmethod
    def _from_levels(
        cls,
        levels: list[BitVector],
        height_with_runs: int,
        empty_trie: bool,
        runs_encoded: bool,
    ) -> LevelBinaryTrie:
        trie = cls.__new__(cls)
        trie._levels = levels
        trie.height_with_runs = height_with_runs
        trie.empty_trie = empty_trie
        trie.runs_encoded = runs_encoded
        return trie

    def height(self) -> int:
        return len(self._levels)

    def node(self, node_id: int, level: int) -> int:
        """The two bits of a node as an integer: 0b10 left, 0b01 right."""
        bits = self._levels[level]
        return (bits[2 * node_id] << 1) | bits[2 * node_id + 1]

    def left_child(self, node_id: int, level: int) -> int:
        if level >= self.height() - 1:
            return 0
        return self._levels[level].rank(2 * node_id)

    def right_child(self, node_id: int, level: int) -> int:
        if level >= self.height() - 1:
            return 0
        return self._levels[level].rank(2 * node_id + 1)

    def size_in_bytes(self) -> int:
        """Bytes taken by the level bit vectors plus the header fields."""
        return sum(bits.size_in_bytes() for bits in self._levels) + _HEADER.size

    def serialize(self, stream: BinaryIO) -> int:
        """Write the trie to a binary stream and return the bytes written."""
        stream.write(
            _HEADER.pack(self.height(), self.height_with_runs, self.empty_trie, self.runs_encoded)
        )
        return _HEADER.size + sum(bits.write(stream) for bits in self._levels)

    @classmethod
    def load(cls, stream: BinaryIO) -> LevelBinaryTrie:
        """Read a trie written by :meth:`serialize`."""
        height, height_with_runs, empty_trie, runs_encoded = _HEADER.unpack(
            _read_exact(stream, _HEADER.size)
        )
        levels = [BitVector.read(stream) for _ in range(height)]
        return cls._from_levels(levels, height_with_runs, empty_trie, runs_encoded)

    def _compress(self, ones: list[list[int]], positions: list[int], level: int, node_id: int) -> bool:
        """Rewrite a subtree with complete subtrees collapsed; True if it was complete."""
        node = self.node(node_id, level)
        if level == self.height() - 1:
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
                if level == self.height() - 2:
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
        height = self.height()
        ones: list[list[int]] = [[] for _ in range(height)]
        positions = [0] * height
        self._compress(ones, positions, 0, 0)

        last_level = max((level for level, pos in enumerate(positions) if pos > 0), default=0)
        levels = [BitVector(pos) for pos in positions]
        for bits, level_ones in zip(levels, ones):
            for pos in level_ones:
                bits[pos] = 1
        self._levels = levels
        self.height_with_runs = last_level + 1
        self.runs_encoded = True

    def _walk(self, partial: int, node_id: int, level: int) -> Iterator[int]:
        if level == self.height():
            yield partial
            return
        node = self.node(node_id, level)
        if node & 0b10:
            yield from self._walk(partial, self.left_child(node_id, level), level + 1)
        if node & 0b01:
            right = partial | (1 << (self.height() - level - 1))
            yield from self._walk(right, self.right_child(node_id, level), level + 1)

    def _walk_runs(self, partial: int, node_id: int, level: int) -> Iterator[int]:
        if level == self.height_with_runs:
            yield partial
            return
        node = self.node(node_id, level)
        if node == 0b00:
            span = (1 << (self.height() - level)) - 1
            yield from range(partial, (partial | span) + 1)
            return
        if node & 0b10:
            yield from self._walk_runs(partial, self.left_child(node_id, level), level + 1)
        if node & 0b01:
            right = partial | (1 << (self.height() - level - 1))
            yield from self._walk_runs(right, self.right_child(node_id, level), level + 1)

    def decode(self) -> list[int]:
        """The encoded integers in increasing order."""
        if self.runs_encoded:
            if self.empty_trie:
                return []
            return list(self._walk_runs(0, 0, 0))
        return list(self._walk(0, 0, 0))

    def trie_measure(self) -> int:
        """Number of edges in the trie, i.e. the number of one bits."""
        return sum(bits.count() for bits in self._levels)