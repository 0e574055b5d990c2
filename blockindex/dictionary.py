"""
blockindex/dictionary.py

Dictionary maps terms and documents to dense integer IDs.

    terms: token -> term_id   (0, 1, 2, ... in first-seen order)
    docs:  path  -> doc_id    (0, 1, 2, ... in discovery order)

IDs are never reassigned while a build is running. The tables are
single-writer: only the build path calls assign_*; queries use the
read-only accessors.
"""

from typing import Dict, List, Optional


class Dictionary:
    """
    In-memory term and document ID tables for one build.

    Typical usage:
        d = Dictionary()
        tid = d.assign_term("input")     # 0
        did = d.assign_doc("texts/a")    # 0
        d.assign_term("input")           # 0 again
        d.doc_path(did)                  # "texts/a"
    """
    def __init__(self):
        self.terms: Dict[str, int] = {}
        self.docs: Dict[str, int] = {}
        self._paths: List[str] = []  # doc_id -> path

    def assign_term(self, token: str) -> int:
        term_id = self.terms.get(token)
        if term_id is None:
            term_id = len(self.terms)
            self.terms[token] = term_id
        return term_id

    def assign_doc(self, path: str) -> int:
        doc_id = self.docs.get(path)
        if doc_id is None:
            doc_id = len(self._paths)
            self.docs[path] = doc_id
            self._paths.append(path)
        return doc_id

    def term_id(self, token: str) -> Optional[int]:
        """Lookup without allocation; None for an unknown term."""
        return self.terms.get(token)

    def doc_path(self, doc_id: int) -> str:
        return self._paths[doc_id]

    def doc_paths(self, doc_ids) -> List[str]:
        return [self._paths[d] for d in doc_ids]

    def doc_ids(self) -> range:
        """The full document universe (needed by NOT on sorted lists)."""
        return range(len(self._paths))

    @property
    def num_terms(self) -> int:
        return len(self.terms)

    @property
    def num_docs(self) -> int:
        return len(self._paths)

    def __repr__(self):
        return f"Dictionary(terms={self.num_terms}, docs={self.num_docs})"
