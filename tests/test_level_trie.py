import io
import struct

import pytest
from hypothesis import given
from hypothesis import strategies as st

from bintries.level_trie import LevelBinaryTrie


def _collection_bytes(universe, lists):
    data = struct.pack("<II", 1, universe)
    for il in lists:
        data += struct.pack("<I", len(il)) + struct.pack(f"<{len(il)}I", *il)
    return data


def _read_collection(data, min_size):
    stream = io.BytesIO(data)
    _, universe = struct.unpack("<II", stream.read(8))
    while True:
        raw = stream.read(4)
        if len(raw) < 4:
            break
        (n,) = struct.unpack("<I", raw)
        il = list(struct.unpack(f"<{n}I", stream.read(4 * n)))
        if n > min_size:
            yield universe, il


COLLECTION = _collection_bytes(
    1000,
    [
        [5],
        [0, 1, 2, 3, 4, 5, 6, 7],
        [3, 17, 18, 19, 20, 21, 500, 999],
        list(range(100, 228)),
        [1, 2, 512, 513, 514, 515, 998],
        list(range(0, 1000, 7)),
    ],
)


@pytest.mark.parametrize("runs", [False, True])
@pytest.mark.parametrize("min_size", [0, 5])
def test_encoding_collection_decodes_back(runs, min_size):
    checked = 0
    for universe, il in _read_collection(COLLECTION, min_size):
        trie = LevelBinaryTrie(il, universe)
        if runs:
            trie.encode_runs()
        assert trie.decode() == il
        checked += 1
    assert checked == (6 if min_size == 0 else 5)


def test_structure_of_small_trie():
    trie = LevelBinaryTrie([1, 2, 3], 4)
    assert trie.height() == 2
    assert trie.node(0, 0) == 0b11
    assert trie.node(0, 1) == 0b01
    assert trie.node(1, 1) == 0b11
    assert trie.left_child(0, 0) == 0
    assert trie.right_child(0, 0) == 1
    assert trie.left_child(0, 1) == 0
    assert trie.trie_measure() == 5
    assert trie.decode() == [1, 2, 3]


def test_full_universe_collapses_to_root():
    trie = LevelBinaryTrie(range(8), 8)
    trie.encode_runs()
    assert trie.runs_encoded
    assert trie.trie_measure() == 0
    assert trie.decode() == list(range(8))


def test_runs_shrink_trie():
    values = list(range(64, 128)) + [300]
    plain = LevelBinaryTrie(values, 512)
    runs = LevelBinaryTrie(values, 512)
    runs.encode_runs()
    assert runs.trie_measure() < plain.trie_measure()
    assert runs.size_in_bytes() < plain.size_in_bytes()
    assert runs.decode() == values


def test_from_values_fits_largest_value():
    trie = LevelBinaryTrie.from_values([0, 1, 2, 4])
    assert trie.height() == 3
    assert trie.decode() == [0, 1, 2, 4]


@pytest.mark.parametrize(
    "values, universe",
    [([], 16), ([3, 2], 16), ([1, 1], 16), ([16], 16), ([-1], 16), ([0], 1)],
)
def test_invalid_input(values, universe):
    with pytest.raises(ValueError):
        LevelBinaryTrie(values, universe)


@pytest.mark.parametrize("runs", [False, True])
def test_serialize_load_round_trip(runs):
    values = [3, 17, 18, 19, 20, 21, 500, 999]
    trie = LevelBinaryTrie(values, 1000)
    if runs:
        trie.encode_runs()
    out = io.BytesIO()
    written = trie.serialize(out)
    assert written == len(out.getvalue()) == trie.size_in_bytes()
    out.seek(0)
    loaded = LevelBinaryTrie.load(out)
    assert loaded.height() == trie.height()
    assert loaded.runs_encoded == runs
    assert loaded.height_with_runs == trie.height_with_runs
    assert loaded.decode() == values


def test_load_truncated():
    trie = LevelBinaryTrie([1, 5, 9], 16)
    out = io.BytesIO()
    trie.serialize(out)
    with pytest.raises(ValueError):
        LevelBinaryTrie.load(io.BytesIO(out.getvalue()[:-3]))


@given(st.sets(st.integers(min_value=0, max_value=1023), min_size=1))
def test_round_trip_any_set(values):
    expected = sorted(values)
    plain = LevelBinaryTrie(expected, 1024)
    assert plain.decode() == expected
    runs = LevelBinaryTrie(expected, 1024)
    runs.encode_runs()
    assert runs.decode() == expected
    assert runs.trie_measure() <= plain.trie_measure()