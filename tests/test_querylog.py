import io
import struct

import pytest
from hypothesis import given
from hypothesis import strategies as st

from bintries.querylog import (
    CollectionHeader,
    load_query_log,
    read_collection_header,
    required_set_indexes,
)


def _header_bytes(rank_type, runs, levelwise, n_sets, universe, block_size=None):
    data = struct.pack("<i", rank_type)
    if block_size is not None:
        data += struct.pack("<I", block_size)
    data += struct.pack("<??", runs, levelwise)
    data += struct.pack("<III", n_sets, 1, universe)
    return data


def test_header_plain_rank():
    stream = io.BytesIO(_header_bytes(0, True, False, 7, 1000))
    header = read_collection_header(stream)
    assert header == CollectionHeader(
        rank_type=0, runs=True, levelwise=False, n_sets=7, universe=1000
    )
    assert header.block_size == 512
    assert header.rank_name == "rank v"


def test_header_interleaved_rank_reads_block_size():
    stream = io.BytesIO(_header_bytes(1, False, True, 3, 5000, block_size=256))
    header = read_collection_header(stream)
    assert header.block_size == 256
    assert header.levelwise is True
    assert header.runs is False
    assert header.n_sets == 3
    assert header.universe == 5000
    assert header.rank_name == "rank il"


def test_header_v5_rank_name():
    header = read_collection_header(io.BytesIO(_header_bytes(2, False, False, 1, 10)))
    assert header.rank_name == "rank v5"


def test_header_leaves_stream_after_header():
    payload = b"trie-data"
    stream = io.BytesIO(_header_bytes(0, False, False, 2, 64) + payload)
    read_collection_header(stream)
    assert stream.read() == payload


def test_header_truncated_raises():
    data = _header_bytes(1, False, False, 2, 64, block_size=128)
    with pytest.raises(ValueError):
        read_collection_header(io.BytesIO(data[:-2]))


def test_load_query_log_filters(tmp_path):
    log = tmp_path / "queries.txt"
    log.write_text("0 1 2\n3\n4 9 5\n9 10\n\n2 2\n")
    assert load_query_log(log, 9) == [[0, 1, 2], [4, 5], [2, 2]]


def test_load_query_log_keeps_only_valid_ids(tmp_path):
    log = tmp_path / "queries.txt"
    log.write_text("5 6 7\n1 2\n")
    queries = load_query_log(log, 3)
    assert queries == [[1, 2]]
    assert all(0 <= i < 3 for q in queries for i in q)


def test_load_query_log_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_query_log(tmp_path / "absent.txt", 10)


def test_load_query_log_bad_number(tmp_path):
    log = tmp_path / "queries.txt"
    log.write_text("1 two 3\n")
    with pytest.raises(ValueError):
        load_query_log(log, 10)


def test_required_set_indexes_example():
    assert required_set_indexes([[4, 1], [1, 2], [7, 4]]) == [1, 2, 4, 7]


def test_required_set_indexes_empty():
    assert required_set_indexes([]) == []


@given(st.lists(st.lists(st.integers(min_value=0, max_value=200), max_size=8), max_size=10))
def test_required_set_indexes_sorted_unique_and_complete(queries):
    result = required_set_indexes(queries)
    assert result == sorted(set(result))
    assert set(result) == {i for q in queries for i in q}