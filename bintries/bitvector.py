"""A plain bit vector with constant-time rank queries."""

from __future__ import annotations

import struct
from itertools import accumulate
from typing import BinaryIO, Iterator

_SIZE = struct.Struct("<Q")


def _read_exact(stream: BinaryIO, count: int) -> bytes:
    data = stream.read(count)
    if len(data) != count:
        raise ValueError("unexpected end of stream while reading a bit vector")
    return data


class BitVector:
    """A fixed-length sequence of bits, all zero when created.

    Bit ``i`` lives in byte ``i // 8`` at bit position ``i % 8``.  The
    serialized form is the bit count as a little-endian 64-bit integer
    followed by the bits padded to whole 64-bit words.
    """

    __slots__ = ("_size", "_data", "_prefix")

    def __init__(self, size: int = 0) -> None:
        if size < 0:
            raise ValueError("bit vector size must not be negative")
        self._size = size
        self._data = bytearray((size + 7) // 8)
        self._prefix: list[int] | None = None

    def __len__(self) -> int:
        return self._size

    def _check(self, index: int) -> None:
        if not 0 <= index < self._size:
            raise IndexError(f"bit index {index} out of range for size {self._size}")

    def __getitem__(self, index: int) -> int:
        self._check(index)
        return (self._data[index >> 3] >> (index & 7)) & 1

    def __setitem__(self, index: int, value: int | bool) -> None:
        self._check(index)
        mask = 1 << (index & 7)
        if value:
            self._data[index >> 3] |= mask
        else:
            self._data[index >> 3] &= ~mask & 0xFF
        self._prefix = None

    def __iter__(self) -> Iterator[int]:
        return (self[i] for i in range(self._size))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BitVector):
            return NotImplemented
        return self._size == other._size and self._data == other._data

    def __repr__(self) -> str:
        bits = "".join(str(bit) for bit in self)
        return f"BitVector({self._size}, '{bits}')"

    def resize(self, size: int) -> None:
        """Change the length, dropping bits past the end or adding zeros."""
        if size < 0:
            raise ValueError("bit vector size must not be negative")
        nbytes = (size + 7) // 8
        if nbytes <= len(self._data):
            del self._data[nbytes:]
        else:
            self._data.extend(bytes(nbytes - len(self._data)))
        tail = size & 7
        if tail and nbytes:
            self._data[-1] &= (1 << tail) - 1
        self._size = size
        self._prefix = None

    def rank(self, position: int) -> int:
        """Number of ones in the bits before ``position``."""
        if not 0 <= position <= self._size:
            raise IndexError(f"rank position {position} out of range for size {self._size}")
        if self._prefix is None:
            self._prefix = list(
                accumulate((byte.bit_count() for byte in self._data), initial=0)
            )
        whole, rest = divmod(position, 8)
        result = self._prefix[whole]
        if rest:
            result += (self._data[whole] & ((1 << rest) - 1)).bit_count()
        return result

    def count(self) -> int:
        """Number of ones in the whole vector."""
        return self.rank(self._size)

    def size_in_bytes(self) -> int:
        """Bytes taken by the serialized form."""
        return _SIZE.size + 8 * ((self._size + 63) // 64)

    def write(self, stream: BinaryIO) -> int:
        """Write the vector to a binary stream and return the bytes written."""
        padded = bytes(self._data) + bytes(8 * ((self._size + 63) // 64) - len(self._data))
        stream.write(_SIZE.pack(self._size))
        stream.write(padded)
        return _SIZE.size + len(padded)

    @classmethod
    def read(cls, stream: BinaryIO) -> BitVector:
        """Read a vector written by :meth:`write`."""
        (size,) = _SIZE.unpack(_read_exact(stream, _SIZE.size))
        words = (size + 63) // 64
        payload = _read_exact(stream, 8 * words)
        vector = cls(size)
        vector._data[:] = payload[: len(vector._data)]
        tail = size & 7
        if tail and vector._data:
            vector._data[-1] &= (1 << tail) - 1
        return vector