import html
import os
import re
from typing import Iterator, List, NamedTuple

from ftfy import fix_text

from blockindex.config import PUNCTUATION

# Words (letters/digits, inner hyphens or apostrophes kept) or one symbol.
TOKEN_RE = re.compile(r"\w+(?:[-'’]\w+)*|[^\w\s]")
WORD_RE = re.compile(r"\w")


class Token(NamedTuple):
    text: str
    is_punctuation: bool


class Parser:
    """
    Default text collaborator for plain-text corpora.
    Uses ftfy + html to clean malformed text.

    What it does:
    - Discovers the files of a corpus directory in a stable (sorted) order
    - Reads each file as UTF-8 and repairs mojibake / HTML entities
    - Splits text into word tokens and single-character symbol tokens
    - Drops tokens found in the punctuation set

    Case is preserved: "Input" and "input" are different terms.

    Methods:
        iter_documents(corpus_dir) -> Iterator[str]
        convert(path) -> str
        tokenize(text) -> list[Token]
        terms(text) -> list[str]
    """

    def __init__(self, punctuation=PUNCTUATION):
        self.punctuation = frozenset(punctuation)

    def iter_documents(self, corpus_dir: str) -> Iterator[str]:
        """
        Yield file paths directly under corpus_dir, sorted by name.
        Subdirectories and hidden files are skipped.
        """
        for name in sorted(os.listdir(corpus_dir)):
            if name.startswith("."):
                continue
            path = os.path.join(corpus_dir, name)
            if os.path.isfile(path):
                yield path

    def convert(self, path: str) -> str:
        """Read a document as plain text. Only UTF-8 text files are understood."""
        with open(path, "r", encoding="utf-8", errors="ignore") as f:
            raw = f.read()
        return fix_text(html.unescape(raw))

    def tokenize(self, text: str) -> List[Token]:
        """
        Split text into tokens; is_punctuation marks single non-word symbols.
        Return [] if nothing remains after tokenization.
        """
        return [Token(t, WORD_RE.match(t) is None) for t in TOKEN_RE.findall(text)]

    def terms(self, text: str) -> List[str]:
        """Tokens that are indexed: everything not in the punctuation set."""
        return [tok.text for tok in self.tokenize(text) if tok.text not in self.punctuation]

    def parse_document(self, path: str) -> List[str]:
        return self.terms(self.convert(path))


if __name__ == "__main__":
    import sys

    parser = Parser()
    for path in parser.iter_documents(sys.argv[1] if len(sys.argv) > 1 else "texts"):
        toks = parser.parse_document(path)
        print(path, len(toks), toks[:10])
