"""Reading of trie collection headers and query logs for set intersections."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from os import PathLike
from typing import BinaryIO, Iterable, Sequence

_RANK_TYPE = struct.Struct("<i")
_BLOCK_SIZE = struct.Struct("<I")
_FLAGS = struct.Struct("<??")
_COUNTS = struct.Struct("<III")

_RANK_NAMES = {0: "rank v", 1: "rank il"}


def _read_exact(stream: BinaryIO, count: int) -> bytes:
    data = stream.read(count)
    if len(data) != count:
        raise ValueError("unexpected end of stream while reading a collection header")
    return data


@dataclass(frozen=True)
class CollectionHeader:
    """Description of a serialized collection of tries.

    ``rank_type`` is 0 for plain rank, 1 for interleaved rank (which also
    carries ``block_size``) and anything else for the v5 rank variant.
    """

    rank_type: int
    runs: bool
    levelwise: bool
    n_sets: int
    universe: int
    block_size: int = 512

    @property
    def rank_name(self) -> str:
        return _RANK_NAMES.get(self.rank_type, "rank v5")


def read_collection_header(stream: BinaryIO) -> CollectionHeader:
    """Read the header that precedes the tries of a collection file.

    The layout is a 32-bit rank type, a 32-bit block size present only for
    interleaved rank, two flag bytes (runs, level-wise), and then the number
    of sets, an unused word and the universe as 32-bit integers.
    """
    (rank_type,) = _RANK_TYPE.unpack(_read_exact(stream, _RANK_TYPE.size))
    block_size = 512
    if rank_type == 1:
        (block_size,) = _BLOCK_SIZE.unpack(_read_exact(stream, _BLOCK_SIZE.size))
    runs, levelwise = _FLAGS.unpack(_read_exact(stream, _FLAGS.size))
    n_sets, _unused, universe = _COUNTS.unpack(_read_exact(stream, _COUNTS.size))
    return CollectionHeader(
        rank_type=rank_type,
        runs=runs,
        levelwise=levelwise,
        n_sets=n_sets,
        universe=universe,
        block_size=block_size,
    )


def load_query_log(path: str | PathLike[str], n_sets: int) -> list[list[int]]:
    """Read one query per line as whitespace-separated set ids.

    Ids that do not name one of the ``n_sets`` sets are dropped, and only
    queries left with more than one id are kept.
    """
    queries: list[list[int]] = []
    with open(path, encoding="utf-8") as log:
        for line in log:
            query = [set_id for set_id in map(int, line.split()) if 0 <= set_id < n_sets]
            if len(query) > 1:
                queries.append(query)
    return queries


def required_set_indexes(queries: Iterable[Sequence[int]]) -> list[int]:
    """The distinct set ids used by any query, in increasing order."""
    return sorted({set_id for query in queries for set_id in query})