"""
blockindex/indexer.py

Build driver: token stream -> Dictionary -> BlockBuilder -> Merger.

    indexer = Indexer(IndexConfig.under("work"))
    result = indexer.build("texts")          # uses the default Parser
    Searcher.from_build(result).lookup("input")

Callers with their own conversion/tokenization feed the pipeline directly
with add_document() or index_tokens() and then call finish().

Output directories:
    - <blocks_dir>/block-<i>/shard-<j> : intermediate blocks (removed after merge)
    - <index_dir>/shard-<j>            : final index
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from blockindex.block_builder import BlockBuilder
from blockindex.config import IndexConfig
from blockindex.dictionary import Dictionary
from blockindex.errors import IOFailure
from blockindex.merger import Merger
from blockindex.parser import Parser
from blockindex.paths import retired_dir, staging_dir
from blockindex.profkit import report


@dataclass
class BuildResult:
    dictionary: Dictionary
    index_dir: str
    representation: str
    blocks: int
    shards: int
    terms: int
    documents: int
    records: int


class Indexer:
    """
    Single-writer index builder.

    Holds the Dictionary (term/doc IDs) and a BlockBuilder for the
    lifetime of one build. Not safe for concurrent add_* calls.
    """

    def __init__(self, config: Optional[IndexConfig] = None, dictionary: Optional[Dictionary] = None):
        self.config = config or IndexConfig()
        self.dictionary = dictionary or Dictionary()
        self.builder = BlockBuilder(self.config)
        self._finished = False

    def reset_workspace(self) -> None:
        """
        Remove blocks and any staged or parked index left by an earlier
        (possibly failed) build. Leftover block directories would otherwise be
        merged again.
        """
        index_dir = self.config.index_dir
        for path in (self.config.blocks_dir, staging_dir(index_dir), retired_dir(index_dir)):
            if os.path.exists(path):
                try:
                    shutil.rmtree(path)
                except OSError as e:
                    raise IOFailure("remove", path, e) from e
        self.builder.prepare()

    def add_token(self, doc_path: str, token: str) -> None:
        """Feed one (document, token) pair; punctuation tokens are dropped."""
        doc_id = self.dictionary.assign_doc(doc_path)
        if token in self.config.punctuation:
            return
        self.builder.add(self.dictionary.assign_term(token), doc_id)

    def add_document(self, doc_path: str, tokens: Iterable[str]) -> int:
        """
        Register a document and feed its tokens. The document gets an ID even
        when it yields no terms, so it still belongs to the NOT universe.
        """
        doc_id = self.dictionary.assign_doc(doc_path)
        punct = self.config.punctuation
        n = 0
        for token in tokens:
            if token in punct:
                continue
            self.builder.add(self.dictionary.assign_term(token), doc_id)
            n += 1
        return n

    def index_tokens(self, stream: Iterable[Tuple[str, str]]) -> None:
        """Consume a stream of (doc_path, token) pairs."""
        for doc_path, token in stream:
            self.add_token(doc_path, token)

    def finish(self) -> BuildResult:
        """Flush the last block, merge every block and publish the index."""
        if self._finished:
            raise RuntimeError("this Indexer already finished its build")
        self._finished = True
        shard_counts = self.builder.finish()
        print(f"[Indexer] {self.builder.block_count} blocks, {self.builder.records_written} records, "
              f"{self.dictionary.num_terms} terms, {self.dictionary.num_docs} docs")
        terms, shards = Merger(self.config).merge(shard_counts)
        report()
        return BuildResult(
            dictionary=self.dictionary,
            index_dir=self.config.index_dir,
            representation=self.config.representation,
            blocks=len(shard_counts),
            shards=shards,
            terms=terms,
            documents=self.dictionary.num_docs,
            records=self.builder.records_written,
        )

    def build(self, corpus_dir: str, parser: Optional[Parser] = None) -> BuildResult:
        """
        Index every document of corpus_dir (discovery order = doc id order).
        Any I/O or codec error aborts the build; index_dir is left untouched.
        """
        parser = parser or Parser(self.config.punctuation)
        self.reset_workspace()

        docs = 0
        for path in parser.iter_documents(corpus_dir):
            n = self.add_document(path, parser.parse_document(path))
            docs += 1
            print(f"[Indexer] {path}: {n} terms")
        print(f"[Indexer] Indexed {docs} documents from {corpus_dir}")
        return self.finish()


def build_index(corpus_dir: str, config: Optional[IndexConfig] = None) -> BuildResult:
    return Indexer(config).build(corpus_dir)
