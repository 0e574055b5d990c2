# tests/test_merger.py
import os
import random
from collections import defaultdict

import pytest

from blockindex.block_builder import BlockBuilder
from blockindex.config import IndexConfig
from blockindex.errors import CorruptShard, IOFailure
from blockindex import merger
from blockindex.merger import BlockCursor, Merger, merge_blocks
from blockindex.paths import block_dir, retired_dir, shard_path, staging_dir
from blockindex.shardio import ShardWriter, iter_shards

RANDOM_SEED = 2026


def write_block(root, index, entries, capacity=3):
    with ShardWriter(block_dir(root, index), capacity) as w:
        for t, d in entries:
            w.add(t, d)
    return w.shard_count


def read_index(index_dir):
    return [e for s in iter_shards(index_dir) for e in s]


def test_block_cursor_walks_all_shards(tmp_path):
    root = str(tmp_path / "blocks")
    entries = [(t, [t]) for t in range(8)]
    n = write_block(root, 0, entries, capacity=3)
    cur = BlockCursor(block_dir(root, 0), n)
    seen = []
    while cur.head() is not None:
        seen.append(cur.take())
    assert seen == entries
    assert cur.finished


def test_block_cursor_with_no_shards_is_finished(tmp_path):
    cur = BlockCursor(str(tmp_path / "nowhere"), 0)
    assert cur.finished
    assert cur.head() is None


def test_ties_are_merged_once_and_deduplicated(tmp_path):
    root = str(tmp_path / "blocks")
    counts = [
        write_block(root, 0, [(0, [0, 0, 1]), (2, [1]), (5, [1])]),
        write_block(root, 1, [(0, [3, 1]), (1, [2]), (5, [2, 2])]),
        write_block(root, 2, [(2, [4]), (9, [4])]),
    ]
    index_dir = str(tmp_path / "index")
    terms, shards = merge_blocks(root, counts, index_dir, shard_capacity=2, progress_every=0)
    assert terms == 5
    assert shards == 3
    assert read_index(index_dir) == [
        (0, [0, 1, 3]),
        (1, [2]),
        (2, [1, 4]),
        (5, [1, 2]),
        (9, [4]),
    ]
    assert not os.path.exists(staging_dir(index_dir))


def test_merge_matches_reference_index(tmp_path):
    rng = random.Random(RANDOM_SEED)
    cfg = IndexConfig.under(str(tmp_path), block_capacity=97, shard_capacity=5,
                            index_shard_capacity=11, progress_every=0)
    builder = BlockBuilder(cfg)
    builder.prepare()

    reference = defaultdict(set)
    for doc_id in range(60):
        for _ in range(rng.randint(0, 40)):
            term_id = rng.randrange(150)
            builder.add(term_id, doc_id)
            reference[term_id].add(doc_id)
    counts = builder.finish()
    assert len(counts) > 1

    Merger(cfg).merge(counts)

    merged = read_index(cfg.index_dir)
    assert [t for t, _ in merged] == sorted(reference)
    assert {t: d for t, d in merged} == {t: sorted(d) for t, d in reference.items()}
    for s in iter_shards(cfg.index_dir):
        assert 0 < len(s) <= 11
    assert not os.path.exists(cfg.blocks_dir)


def test_keep_blocks(tmp_path):
    cfg = IndexConfig.under(str(tmp_path), keep_blocks=True, progress_every=0)
    root = cfg.blocks_dir
    counts = [write_block(root, 0, [(0, [0])])]
    Merger(cfg).merge(counts)
    assert os.path.isdir(block_dir(root, 0))


def test_merge_replaces_previous_index(tmp_path):
    root = str(tmp_path / "blocks")
    index_dir = str(tmp_path / "index")
    os.makedirs(index_dir)
    for i in range(5):
        (tmp_path / "index" / f"shard-{i}").write_bytes(b"stale")
    counts = [write_block(root, 0, [(0, [0]), (1, [0])])]
    merge_blocks(root, counts, index_dir, shard_capacity=10, progress_every=0)
    assert sorted(os.listdir(index_dir)) == ["shard-0"]
    assert read_index(index_dir) == [(0, [0]), (1, [0])]


def test_no_blocks_yields_empty_index(tmp_path):
    index_dir = str(tmp_path / "index")
    assert merge_blocks(str(tmp_path / "blocks"), [], index_dir, shard_capacity=4) == (0, 0)
    assert os.listdir(index_dir) == []


def test_corrupt_block_aborts_without_publishing(tmp_path):
    root = str(tmp_path / "blocks")
    counts = [write_block(root, 0, [(0, [0]), (1, [1])]), write_block(root, 1, [(0, [2])])]
    with open(shard_path(block_dir(root, 1), 0), "r+b") as f:
        f.truncate(10)
    index_dir = str(tmp_path / "index")
    with pytest.raises(CorruptShard):
        merge_blocks(root, counts, index_dir, shard_capacity=4, progress_every=0)
    assert not os.path.exists(index_dir)


def test_failed_swap_keeps_previous_index(tmp_path, monkeypatch):
    root = str(tmp_path / "blocks")
    index_dir = str(tmp_path / "index")
    counts = [write_block(root, 0, [(0, [0]), (1, [1])])]
    merge_blocks(root, counts, index_dir, shard_capacity=10, progress_every=0)
    before = read_index(index_dir)

    real_replace = os.replace
    stage = staging_dir(index_dir)

    def failing_replace(src, dst):
        if src == stage:
            raise OSError("rename refused")
        return real_replace(src, dst)

    monkeypatch.setattr(merger.os, "replace", failing_replace)
    counts = [write_block(str(tmp_path / "blocks2"), 0, [(7, [3])])]
    with pytest.raises(IOFailure):
        merge_blocks(str(tmp_path / "blocks2"), counts, index_dir, shard_capacity=10, progress_every=0)

    assert read_index(index_dir) == before
    assert not os.path.exists(retired_dir(index_dir))


def test_failed_park_keeps_previous_index(tmp_path, monkeypatch):
    root = str(tmp_path / "blocks")
    index_dir = str(tmp_path / "index")
    counts = [write_block(root, 0, [(0, [0])])]
    merge_blocks(root, counts, index_dir, shard_capacity=10, progress_every=0)

    def refuse(src, dst):
        raise OSError("rename refused")

    monkeypatch.setattr(merger.os, "replace", refuse)
    with pytest.raises(IOFailure):
        merge_blocks(root, counts, index_dir, shard_capacity=10, progress_every=0)
    assert read_index(index_dir) == [(0, [0])]


def test_leftover_retired_index_is_cleared(tmp_path):
    root = str(tmp_path / "blocks")
    index_dir = str(tmp_path / "index")
    os.makedirs(retired_dir(index_dir))
    (tmp_path / "index.old" / "shard-0").write_bytes(b"stale")
    counts = [write_block(root, 0, [(4, [2])])]
    merge_blocks(root, counts, index_dir, shard_capacity=10, progress_every=0)
    assert read_index(index_dir) == [(4, [2])]
    assert not os.path.exists(retired_dir(index_dir))
