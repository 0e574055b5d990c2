# blockindex/config.py
"""
Build/query configuration.

Every component takes its settings from an IndexConfig passed to its
constructor; nothing is read from module-level mutable state.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from blockindex.paths import BLOCKS_DIR, INDEX_DIR

# Tokens dropped before ID assignment.
PUNCTUATION = frozenset({".", "!", "?", ":", ";", ",", "(", ")", "—", "·"})

BLOCK_CAPACITY = 10_000        # records buffered before a block is flushed
SHARD_CAPACITY = 1_000         # entries per block shard
INDEX_SHARD_CAPACITY = 10_000  # entries per final index shard

REPRESENTATIONS = ("sorted", "bitset")


@dataclass
class IndexConfig:
    block_capacity: int = BLOCK_CAPACITY
    shard_capacity: int = SHARD_CAPACITY
    index_shard_capacity: int = INDEX_SHARD_CAPACITY
    blocks_dir: str = BLOCKS_DIR
    index_dir: str = INDEX_DIR
    punctuation: frozenset = field(default_factory=lambda: PUNCTUATION)
    representation: str = "sorted"
    keep_blocks: bool = False
    progress_every: int = 100_000  # merged entries between progress lines (0 = off)

    def __post_init__(self):
        for name in ("block_capacity", "shard_capacity", "index_shard_capacity"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive int, got {value!r}")
        if self.representation not in REPRESENTATIONS:
            raise ValueError(f"representation must be one of {REPRESENTATIONS}, got {self.representation!r}")
        self.punctuation = frozenset(self.punctuation)

    @classmethod
    def under(cls, work_dir: str, **overrides) -> "IndexConfig":
        """Config whose blocks/ and index/ directories live under work_dir."""
        overrides.setdefault("blocks_dir", os.path.join(work_dir, "blocks"))
        overrides.setdefault("index_dir", os.path.join(work_dir, "index"))
        return cls(**overrides)
