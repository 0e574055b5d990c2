# blockindex/paths.py

import os

# --- Base data paths ---
DATA_DIR = "data"

# --- Intermediate per-block shards (removed after the merge) ---
BLOCKS_DIR = f"{DATA_DIR}/blocks"

# --- Final merged index (read-only once published) ---
INDEX_DIR = f"{DATA_DIR}/index"

# --- Staging directory for a merge in progress ---
STAGING_SUFFIX = ".tmp"

# --- Previous index, parked while the staged one is swapped in ---
RETIRED_SUFFIX = ".old"


def block_dir(blocks_root: str, block_index: int) -> str:
    return os.path.join(blocks_root, f"block-{block_index}")


def shard_path(directory: str, shard_index: int) -> str:
    return os.path.join(directory, f"shard-{shard_index}")


def staging_dir(index_dir: str) -> str:
    return os.path.normpath(index_dir) + STAGING_SUFFIX


def retired_dir(index_dir: str) -> str:
    return os.path.normpath(index_dir) + RETIRED_SUFFIX
