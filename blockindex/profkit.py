# blockindex/profkit.py
# Build/merge counters, off unless PROFKIT=1 is set in the environment.
#
#   build.blocks / build.bytes        blocks flushed, shard bytes written
#   build.sort_ms / build.write_ms    time spent sorting and writing blocks
#   merge.shards_read / merge.read_ms block shards decoded during the merge
#   merge.postings                    doc ids written to the final index
#
# Indexer.finish() prints them through report().

import os
import time
from collections import defaultdict
from contextlib import contextmanager

ENABLED = os.getenv("PROFKIT", "0") == "1"
COUNTERS = defaultdict(float)  # counter name -> count, bytes or milliseconds


def tick(name: str, n: float = 1.0):
    """Add n to a counter."""
    if ENABLED:
        COUNTERS[name] += n


@contextmanager
def timeit(name: str):
    """Add the wall time of the with-block, in ms, to a *_ms counter."""
    if not ENABLED:
        yield
        return
    start = time.perf_counter()
    try:
        yield
    finally:
        tick(name, (time.perf_counter() - start) * 1000.0)


def report(file=None):
    """Print the collected counters, one per line, sorted by name."""
    if not ENABLED:
        return
    for name in sorted(COUNTERS):
        print(f"[profkit] {name:<28} {COUNTERS[name]:,.2f}", file=file)


def reset():
    COUNTERS.clear()
