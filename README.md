# bintries

Compact binary tries for sorted sets of non-negative integers, such as the
posting lists of an inverted index.

A set drawn from a universe `[0, u)` is stored as a binary trie of height
`(u - 1).bit_length()`. Every node is two bits, one for each child, and
children are found with rank queries over the bits. Two layouts are provided:

- `bintries.level_trie.LevelBinaryTrie` keeps one bit vector per level.
- `bintries.flat_trie.FlatBinaryTrie` keeps all levels but the deepest stored
  one in a single bit vector, in breadth-first order, and the deepest stored
  level in a separate one.

Both can be *run encoded* with `encode_runs()`: every subtree that holds all
values in its range is cut away and stored as an empty `00` node, which
shrinks dense sets considerably. `decode()` returns the original sorted list
in either form.

## Building and decoding a trie

```python
from bintries.level_trie import LevelBinaryTrie
from bintries.flat_trie import FlatBinaryTrie

values = [0, 1, 2, 3, 8, 13, 14, 15]

trie = LevelBinaryTrie(values, 16)
assert trie.decode() == values

flat = FlatBinaryTrie(values, 16)
flat.encode_runs()
assert flat.decode() == values

print(trie.height(), trie.trie_measure(), trie.size_in_bytes())
```

The values must be strictly increasing, non-negative and fit in the trie's
height; the universe must be at least 2 and the set must not be empty.
Otherwise the constructors raise `ValueError`. `from_values(values)` builds a
trie just tall enough for the largest value.

Other members of both trie classes:

- `node(node_id, level)` returns the two-bit code of a node: `0b10` for only a
  left child, `0b01` for only a right child, `0b11` for both, and `0b00` for a
  run that was cut away.
- `left_child(node_id, level)` and `right_child(node_id, level)` return the
  ids of the children (0 on the last level).
- `trie_measure()` counts the edges of the trie, i.e. its one bits.
- `size_in_bytes()` is the size of the serialized form.
- The attributes `runs_encoded`, `empty_trie` and `height_with_runs` describe
  the encoding.

`FlatBinaryTrie` also has `elements_coded()`, the number of one bits in its
deepest stored level, and `from_ones(ones_to_write, height, level_pos,
runs_encoded)`, which builds a trie directly from the one positions and the
bit count of each level.

## Storing tries

Tries write themselves to and read themselves from binary streams:

```python
import io

buffer = io.BytesIO()
trie.serialize(buffer)
buffer.seek(0)
restored = LevelBinaryTrie.load(buffer)
assert restored.decode() == values
```

`serialize` returns the number of bytes written. A truncated stream makes
`load` raise `ValueError`.

The underlying `bintries.bitvector.BitVector` supports item access,
iteration, equality, `rank(position)` (ones before a position), `count()`,
`resize(size)`, `size_in_bytes()`, and the same stream round trip through
`write(stream)` and `BitVector.read(stream)`.

## Query logs

`bintries.querylog` reads the inputs used when intersecting many stored sets:

- `read_collection_header(stream)` reads the header of a collection file
  (rank type, block size for interleaved rank, the runs and level-wise flags,
  the number of sets and the universe) into a frozen `CollectionHeader`,
  whose `rank_name` gives a readable name for the rank type.
- `load_query_log(path, n_sets)` reads a text file with one query per line,
  each a list of whitespace-separated set ids; ids outside `[0, n_sets)` are
  dropped and queries left with fewer than two ids are skipped.
- `required_set_indexes(queries)` returns the sorted, distinct set ids that
  the queries refer to, so only those sets need to be kept in memory.

## What this package does not do

It does not intersect tries, time queries, or offer a command-line tool for
running a query log against a collection. The query-log module only reads
headers and query files; loading the tries that follow a header and
computing the intersections is left to the caller.

## Running the tests

The test suite uses pytest and hypothesis, available through the `test`
extra:

```
pip install -e .[test]
pytest
```