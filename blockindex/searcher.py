# blockindex/searcher.py
from __future__ import annotations

import os
from typing import Iterator, List, Union

from blockindex.dictionary import Dictionary
from blockindex.errors import IOFailure
from blockindex.postings import PostingAlgebra, make_algebra
from blockindex.query import And, Expr, Not, Or, Term, parse_query
from blockindex.shardio import Shard, iter_shards


class Searcher:
    """
    Boolean searcher over a finished index directory.

    - Terms are resolved to term ids through the build's Dictionary.
    - lookup() scans index shards from shard-0 until the term is found;
      shards are term-ordered, so the scan also stops as soon as it passes
      the term id.
    - evaluate() combines term postings with the configured algebra
      ("sorted" lists or "bitset").

    The searcher keeps no mutable state between calls, so several threads
    may query the same published index at once.
    """

    def __init__(self, dictionary: Dictionary, index_dir: str, representation: str = "sorted"):
        self.dictionary = dictionary
        self.index_dir = index_dir
        self.representation = representation
        self.algebra: PostingAlgebra = make_algebra(representation, dictionary.num_docs)
        if not os.path.isdir(index_dir):
            raise IOFailure("open index", index_dir)

    @classmethod
    def from_build(cls, result, representation: str | None = None) -> "Searcher":
        """Searcher for a BuildResult (see blockindex.indexer)."""
        return cls(result.dictionary, result.index_dir, representation or result.representation)

    def iter_shards(self) -> Iterator[Shard]:
        return iter_shards(self.index_dir)

    def lookup_ids(self, term: str) -> List[int]:
        """Sorted doc ids for term; [] when the term is unknown."""
        term_id = self.dictionary.term_id(term)
        if term_id is None:
            return []
        for shard in self.iter_shards():
            if not shard or shard[-1][0] < term_id:
                continue
            for tid, docids in shard:
                if tid == term_id:
                    return list(docids)
                if tid > term_id:
                    return []
            return []
        return []

    def lookup(self, term: str) -> List[str]:
        """Document paths containing term (doc id order); [] when unknown."""
        return self.dictionary.doc_paths(self.lookup_ids(term))

    def postings(self, term: str):
        """Posting list of term in the configured representation."""
        return self.algebra.from_ids(self.lookup_ids(term))

    def evaluate_ids(self, expr: Union[Expr, str]) -> List[int]:
        if isinstance(expr, str):
            expr = parse_query(expr)
        alg = self.algebra

        def ev(e):
            if isinstance(e, Term):
                return self.postings(e.text)
            if isinstance(e, And):
                return alg.and_(ev(e.left), ev(e.right))
            if isinstance(e, Or):
                return alg.or_(ev(e.left), ev(e.right))
            if isinstance(e, Not):
                return alg.not_(ev(e.operand))
            raise TypeError(f"unsupported query node {type(e).__name__}")

        return alg.to_ids(ev(expr))

    def evaluate(self, expr: Union[Expr, str]) -> List[str]:
        """Evaluate an expression tree (or query string) into document paths."""
        return self.dictionary.doc_paths(self.evaluate_ids(expr))
