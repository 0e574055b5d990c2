# blockindex/merger.py
"""
K-way merger for on-disk blocks.

Each block is a directory of shard files whose entries are strictly
term_id-sorted and never repeat a term_id across the block. The merger
keeps one decoded shard per block plus a cursor into it, repeatedly picks
the smallest term_id under the cursors, unions the postings of every
block sitting on that term and writes one entry to the final index.

Features
- Ties on the smallest term_id across blocks are consumed in the same step,
  so every term is emitted once in the whole index.
- Doc ids are deduplicated and written in ascending order.
- Output is staged in <index_dir>.tmp and swapped into place only after the
  merge finished, so a failed merge never leaves a half-written index/.

Complexity
- Time:  O(TotalPostings + TotalTerms * log K) where K is the number of blocks.
- Space: O(K * shard_capacity) decoded entries plus the current term's doc set.
"""

from __future__ import annotations

import heapq
import os
import shutil
import sys
from typing import List, Optional, Sequence, Tuple

from blockindex.config import IndexConfig
from blockindex.errors import IOFailure
from blockindex.paths import block_dir, retired_dir, shard_path, staging_dir
from blockindex.profkit import tick, timeit
from blockindex.shardio import Entry, Shard, ShardWriter, read_shard


class BlockCursor:
    """
    Cursor over one block's shard sequence.

    State:
      - shard: the currently loaded shard (decoded entries)
      - pos: index of the next unread entry within it
      - remaining: shard files not read yet
      - finished: no unread entry left in this block
    """

    __slots__ = ("directory", "shard", "pos", "next_shard", "remaining", "finished")

    def __init__(self, directory: str, shard_count: int):
        self.directory = directory
        self.shard: Shard = []
        self.pos = 0
        self.next_shard = 0
        self.remaining = shard_count
        self.finished = False
        self._refill()

    def _refill(self) -> None:
        # Loop so an empty shard file cannot stall the cursor.
        while self.pos >= len(self.shard):
            if self.remaining <= 0:
                self.shard = []
                self.pos = 0
                self.finished = True
                return
            with timeit("merge.read_ms"):
                self.shard = read_shard(shard_path(self.directory, self.next_shard))
            tick("merge.shards_read")
            self.next_shard += 1
            self.remaining -= 1
            self.pos = 0

    def head(self) -> Optional[int]:
        """term_id under the cursor, or None once the block is finished."""
        if self.finished:
            return None
        return self.shard[self.pos][0]

    def take(self) -> Entry:
        """Return the entry under the cursor and advance by one entry."""
        entry = self.shard[self.pos]
        self.pos += 1
        self._refill()
        return entry


def merge_blocks(
    blocks_dir: str,
    shard_counts: Sequence[int],
    index_dir: str,
    *,
    shard_capacity: int,
    progress_every: int = 100_000,
) -> Tuple[int, int]:
    """
    Merge block-0 .. block-(K-1) under blocks_dir into index_dir.

    Args:
        blocks_dir: root holding block-<i>/ directories.
        shard_counts: number of shard files written for each block.
        index_dir: final index directory (replaced atomically on success).
        shard_capacity: entries per final index shard.
        progress_every: print a progress line after this many merged terms (0=off).

    Returns:
        (terms_written, shards_written)
    """
    cursors = [BlockCursor(block_dir(blocks_dir, i), n) for i, n in enumerate(shard_counts)]

    # Min-heap of (term_id, block_idx); one slot per non-finished block.
    heap: List[Tuple[int, int]] = [(c.head(), i) for i, c in enumerate(cursors) if not c.finished]
    heapq.heapify(heap)

    stage = staging_dir(index_dir)
    _remove_tree(stage)
    writer = ShardWriter(stage, shard_capacity)

    merged = 0
    while heap:
        term_id, i = heapq.heappop(heap)
        tied = [i]
        while heap and heap[0][0] == term_id:
            tied.append(heapq.heappop(heap)[1])

        docs = set()
        for b in tied:
            _, docids = cursors[b].take()
            docs.update(docids)
            nxt = cursors[b].head()
            if nxt is not None:
                heapq.heappush(heap, (nxt, b))

        writer.add(term_id, sorted(docs))
        merged += 1
        tick("merge.postings", len(docs))
        if progress_every and merged % progress_every == 0:
            print(f"[Merger] merged={merged:,}  blocks_active={len(heap)}  term_id={term_id}", file=sys.stderr)

    shards_written = writer.close()
    _publish(stage, index_dir)
    print(f"[Merger] DONE  {len(cursors)} blocks -> {index_dir}  terms={merged}  shards={shards_written}")
    return merged, shards_written


def _remove_tree(path: str) -> None:
    if not os.path.exists(path):
        return
    try:
        shutil.rmtree(path)
    except OSError as e:
        raise IOFailure("remove", path, e) from e


def _publish(stage: str, index_dir: str) -> None:
    """
    Swap the staged index into place.

    The current index is parked at <index_dir>.old, the stage is renamed to
    index_dir and only then is the parked copy deleted. If the second rename
    fails the parked index is moved back, so index_dir is never left empty.
    """
    old = retired_dir(index_dir)
    _remove_tree(old)
    try:
        parent = os.path.dirname(os.path.abspath(index_dir))
        os.makedirs(parent, exist_ok=True)
        parked = os.path.exists(index_dir)
        if parked:
            os.replace(index_dir, old)
        try:
            os.replace(stage, index_dir)
        except OSError:
            if parked:
                os.replace(old, index_dir)
            raise
    except OSError as e:
        raise IOFailure("publish index to", index_dir, e) from e
    _remove_tree(old)


class Merger:
    """
    Thin OO wrapper around merge_blocks() that also discards the consumed blocks.
    """

    def __init__(self, config: IndexConfig):
        self.config = config

    def merge(self, shard_counts: Sequence[int]) -> Tuple[int, int]:
        cfg = self.config
        result = merge_blocks(
            cfg.blocks_dir,
            shard_counts,
            cfg.index_dir,
            shard_capacity=cfg.index_shard_capacity,
            progress_every=cfg.progress_every,
        )
        if not cfg.keep_blocks:
            _remove_tree(cfg.blocks_dir)
        return result
