# blockindex/cli.py
"""
Build an index over a directory of text files, then answer boolean queries.

    python -m blockindex.cli texts --query "FORTRAN" --query "был OR NOT (input AND users)"
    python -m blockindex.cli texts --representation bitset --block-capacity 50000
"""

from __future__ import annotations

import argparse
import sys

from blockindex.config import (
    BLOCK_CAPACITY,
    INDEX_SHARD_CAPACITY,
    REPRESENTATIONS,
    SHARD_CAPACITY,
    IndexConfig,
)
from blockindex.errors import BlockIndexError
from blockindex.indexer import Indexer
from blockindex.paths import DATA_DIR
from blockindex.query import parse_query, terms_of
from blockindex.searcher import Searcher


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Blocked sort-based index build + boolean search.")
    ap.add_argument("corpus", help="Directory of plain-text documents")
    ap.add_argument("--query", "-q", action="append", default=[], help="Boolean query (repeatable)")
    ap.add_argument("--representation", choices=REPRESENTATIONS, default="sorted",
                    help="Posting list form used for query evaluation")
    ap.add_argument("--block-capacity", type=int, default=BLOCK_CAPACITY, help="Records per block")
    ap.add_argument("--shard-capacity", type=int, default=SHARD_CAPACITY, help="Entries per block shard")
    ap.add_argument("--index-shard-capacity", type=int, default=INDEX_SHARD_CAPACITY,
                    help="Entries per final index shard")
    ap.add_argument("--work-dir", default=DATA_DIR, help="Where blocks/ and index/ are written")
    ap.add_argument("--keep-blocks", action="store_true", help="Do not delete blocks after the merge")
    return ap


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    try:
        config = IndexConfig.under(
            args.work_dir,
            block_capacity=args.block_capacity,
            shard_capacity=args.shard_capacity,
            index_shard_capacity=args.index_shard_capacity,
            representation=args.representation,
            keep_blocks=args.keep_blocks,
        )
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    try:
        result = Indexer(config).build(args.corpus)
    except (BlockIndexError, OSError) as e:
        print(f"build failed: {e}", file=sys.stderr)
        return 2

    searcher = Searcher.from_build(result)
    status = 0
    for q in args.query:
        try:
            expr = parse_query(q)
            paths = searcher.evaluate(expr)
        except BlockIndexError as e:
            print(f"{q}: error: {e}", file=sys.stderr)
            status = 1
            continue
        unknown = [t for t in terms_of(expr) if result.dictionary.term_id(t) is None]
        if unknown:
            print(f"[cli] {q}: not in the index: {', '.join(unknown)}", file=sys.stderr)
        print(f"{q}: {paths}")
    return status


if __name__ == "__main__":
    sys.exit(main())
