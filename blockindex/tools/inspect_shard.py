# blockindex/tools/inspect_shard.py
import argparse
import sys

from blockindex.errors import BlockIndexError
from blockindex.shardio import read_shard


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Print the entries of a block or index shard file.")
    ap.add_argument("path", help="Path to a shard-<i> file")
    ap.add_argument("--limit", type=int, default=20, help="Entries to show (0 = all)")
    args = ap.parse_args(argv)

    try:
        shard = read_shard(args.path)
    except BlockIndexError as e:
        print(f"[inspect] {e}", file=sys.stderr)
        return 1

    postings = sum(len(d) for _, d in shard)
    first = shard[0][0] if shard else None
    last = shard[-1][0] if shard else None
    print(f"[inspect] {args.path}: entries={len(shard)} postings={postings} term_ids={first}..{last}")
    shown = shard if args.limit == 0 else shard[:args.limit]
    for term_id, docids in shown:
        print(f"  {term_id}\t{len(docids)}\t{docids[:10]}{' ...' if len(docids) > 10 else ''}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
