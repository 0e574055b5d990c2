# blockindex/shardio.py
"""
Binary shard format shared by block shards and final index shards.

Layout (little-endian signed 32-bit integers, no delimiters):

    Shard := entry_count:int32, Entry{entry_count}
    Entry := term_id:int32, posting_count:int32, doc_id:int32{posting_count}

A shard is a list of (term_id, [doc_id, ...]) tuples sorted by term_id.
Decoding never reads past the buffer: any declared count that does not
match the bytes available raises CorruptShard.
"""

from __future__ import annotations

import os
import struct
from typing import Iterator, List, Tuple

from blockindex.errors import CorruptShard, IOFailure
from blockindex.paths import shard_path

Entry = Tuple[int, List[int]]
Shard = List[Entry]

_I32 = struct.Struct("<i")
_HEADER = struct.Struct("<ii")  # term_id, posting_count


def encode(shard: Shard) -> bytes:
    """Serialize a shard; length fields always match the actual sizes."""
    out = bytearray(_I32.pack(len(shard)))
    for term_id, docids in shard:
        n = len(docids)
        out += _HEADER.pack(term_id, n)
        if n:
            out += struct.pack(f"<{n}i", *docids)
    return bytes(out)


def decode(data: bytes, path: str | None = None) -> Shard:
    """Parse a shard produced by encode(). Raises CorruptShard on any size mismatch."""
    view = memoryview(data)
    size = len(view)
    if size < 4:
        raise CorruptShard(f"truncated header ({size} bytes)", path)
    (count,) = _I32.unpack_from(view, 0)
    if count < 0:
        raise CorruptShard(f"negative entry count {count}", path)

    off = 4
    shard: Shard = []
    for i in range(count):
        if off + 8 > size:
            raise CorruptShard(f"entry {i} of {count}: truncated entry header", path)
        term_id, n = _HEADER.unpack_from(view, off)
        off += 8
        if n < 0:
            raise CorruptShard(f"entry {i} (term {term_id}): negative posting count {n}", path)
        end = off + 4 * n
        if end > size:
            raise CorruptShard(
                f"entry {i} (term {term_id}): declares {n} postings, {(size - off) // 4} available", path)
        docids = list(struct.unpack_from(f"<{n}i", view, off)) if n else []
        off = end
        shard.append((term_id, docids))

    if off != size:
        raise CorruptShard(f"{size - off} trailing bytes after {count} entries", path)
    return shard


def write_shard(path: str, shard: Shard) -> int:
    """Encode and write one shard file. Returns the number of bytes written."""
    payload = encode(shard)
    try:
        with open(path, "wb") as f:
            f.write(payload)
    except OSError as e:
        raise IOFailure("write shard", path, e) from e
    return len(payload)


def read_shard(path: str) -> Shard:
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise IOFailure("read shard", path, e) from e
    return decode(data, path)


class ShardWriter:
    """
    Appends entries and writes shard-<i> files of at most `capacity` entries
    into one directory.

    Call add(term_id, docids) in strictly increasing term_id order; the
    final partial shard is written by close().
    """
    def __init__(self, directory: str, capacity: int):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.directory = directory
        self.capacity = capacity
        self.shard_count = 0
        self.entry_count = 0
        self.bytes_written = 0
        self._cur: Shard = []
        self._last_term = None
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise IOFailure("create directory", directory, e) from e

    def add(self, term_id: int, docids: List[int]) -> None:
        if self._last_term is not None and term_id <= self._last_term:
            raise ValueError(f"term ids must increase: {term_id} after {self._last_term}")
        self._last_term = term_id
        self._cur.append((term_id, docids))
        self.entry_count += 1
        if len(self._cur) == self.capacity:
            self._flush()

    def _flush(self) -> None:
        if not self._cur:
            return
        self.bytes_written += write_shard(shard_path(self.directory, self.shard_count), self._cur)
        self.shard_count += 1
        self._cur = []

    def close(self) -> int:
        """Flush the partial shard; returns the number of shard files written."""
        self._flush()
        return self.shard_count

    def __enter__(self): return self
    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
        return False


def iter_shards(directory: str, count: int | None = None) -> Iterator[Shard]:
    """
    Stream decoded shards shard-0, shard-1, ... from a directory.
    With count=None, stops at the first missing index.
    """
    i = 0
    while count is None or i < count:
        path = shard_path(directory, i)
        if count is None and not os.path.exists(path):
            return
        yield read_shard(path)
        i += 1
