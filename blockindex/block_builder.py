# blockindex/block_builder.py
"""
Blocked sort-based run builder.

Pipeline per block:
  1) Buffer (term_id, doc_id) records up to block_capacity.
  2) Sort the buffer by term_id (stable, so arrival order breaks ties).
  3) Group equal term_id runs into index entries (term_id, [doc_id, ...]).
  4) Write the entries as shard-<i> files under block-<index>/ via ShardWriter.

After the stream ends, call finish() to flush the last (possibly partial)
buffer. shard_counts[i] is the number of shard files in block i; the merger
needs it to know how many files to expect.

Doc ids are kept as they arrive inside an entry (duplicates included); the
merger collapses them.
"""

from __future__ import annotations

import os
from typing import List, Tuple

from blockindex.config import IndexConfig
from blockindex.errors import IOFailure
from blockindex.paths import block_dir
from blockindex.profkit import tick, timeit
from blockindex.shardio import ShardWriter

Record = Tuple[int, int]  # (term_id, doc_id)


def group_records(records: List[Record]) -> List[Tuple[int, List[int]]]:
    """
    Sort records by term_id and collapse equal runs into entries.
    Each term_id appears in exactly one output entry.
    """
    records.sort(key=lambda r: r[0])  # list.sort is stable
    entries: List[Tuple[int, List[int]]] = []
    current_term = None
    current_docs: List[int] = []
    for term_id, doc_id in records:
        if term_id != current_term:
            current_term = term_id
            current_docs = []
            entries.append((term_id, current_docs))
        current_docs.append(doc_id)
    return entries


class BlockBuilder:
    """
    Buffers records and flushes them to block-<index>/ directories.

    The builder owns each buffer until it is written; once on disk, the
    block belongs to the filesystem until the merger consumes it.
    """

    def __init__(self, config: IndexConfig):
        self.config = config
        self.blocks_dir = config.blocks_dir
        self.block_capacity = config.block_capacity
        self.shard_capacity = config.shard_capacity
        self.shard_counts: List[int] = []  # per block
        self.records_written = 0
        self._buf: List[Record] = []

    @property
    def block_count(self) -> int:
        return len(self.shard_counts)

    @property
    def buffered(self) -> int:
        return len(self._buf)

    def add(self, term_id: int, doc_id: int) -> None:
        self._buf.append((term_id, doc_id))
        if len(self._buf) >= self.block_capacity:
            self.flush()

    def flush(self) -> int:
        """
        Write the current buffer as the next block. An empty buffer writes
        nothing and returns 0; otherwise returns the block's shard count.
        """
        if not self._buf:
            return 0

        records, self._buf = self._buf, []
        block_index = len(self.shard_counts)
        folder = block_dir(self.blocks_dir, block_index)

        with timeit("build.sort_ms"):
            entries = group_records(records)

        with timeit("build.write_ms"):
            with ShardWriter(folder, self.shard_capacity) as w:
                for term_id, docids in entries:
                    w.add(term_id, docids)
            n_shards = w.shard_count

        self.shard_counts.append(n_shards)
        self.records_written += len(records)
        tick("build.blocks")
        tick("build.bytes", w.bytes_written)
        print(f"[BlockBuilder] Wrote {folder}  records={len(records)}  terms={len(entries)}  shards={n_shards}")
        return n_shards

    def finish(self) -> List[int]:
        """Flush the last partial buffer and return the per-block shard counts."""
        self.flush()
        return list(self.shard_counts)

    def prepare(self) -> None:
        """Create the blocks root. Stale blocks from an earlier build must already be gone."""
        try:
            os.makedirs(self.blocks_dir, exist_ok=True)
        except OSError as e:
            raise IOFailure("create directory", self.blocks_dir, e) from e
