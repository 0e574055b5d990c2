# blockindex/postings.py
"""
Boolean algebra over posting lists, in two interchangeable representations.

  - sorted:  ascending, duplicate-free lists of doc ids. AND/OR are linear
             two-way merges; NOT needs the full doc id universe.
  - bitset:  one bit per document (bit d set <=> doc d matches). AND/OR/NOT
             are bitwise; the universe is the bitset width.

Both representations return the same document sets for the same query.
PostingAlgebra is the strategy the Searcher is configured with; both sides
of an operation must come from the same algebra.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence


# ----------------------------
# Sorted-list form
# ----------------------------

def sorted_and(a: Sequence[int], b: Sequence[int]) -> List[int]:
    """Intersection of two ascending doc id lists."""
    out: List[int] = []
    i = j = 0
    na, nb = len(a), len(b)
    while i < na and j < nb:
        da, db = a[i], b[j]
        if da == db:
            out.append(da)
            i += 1
            j += 1
        elif da < db:
            i += 1
        else:
            j += 1
    return out


def sorted_or(a: Sequence[int], b: Sequence[int]) -> List[int]:
    """Union of two ascending doc id lists (ties emitted once)."""
    out: List[int] = []
    i = j = 0
    na, nb = len(a), len(b)
    while i < na and j < nb:
        da, db = a[i], b[j]
        if da == db:
            out.append(da)
            i += 1
            j += 1
        elif da < db:
            out.append(da)
            i += 1
        else:
            out.append(db)
            j += 1
    out.extend(a[i:])
    out.extend(b[j:])
    return out


def sorted_not(a: Sequence[int], universe: Sequence[int]) -> List[int]:
    """universe \\ a; both ascending."""
    out: List[int] = []
    j = 0
    na = len(a)
    for d in universe:
        while j < na and a[j] < d:
            j += 1
        if j < na and a[j] == d:
            continue
        out.append(d)
    return out


# ----------------------------
# Bitset form
# ----------------------------

class Bitset:
    """
    Fixed-width set of doc ids backed by a Python int.

    Complement is intrinsic: ~b flips exactly `width` bits.
    """

    __slots__ = ("bits", "width")

    def __init__(self, width: int, bits: int = 0):
        if width < 0:
            raise ValueError("width must be non-negative")
        self.width = width
        self.bits = bits & ((1 << width) - 1)

    @classmethod
    def from_ids(cls, doc_ids: Iterable[int], width: int) -> "Bitset":
        # Bits are set in a byte buffer and converted once.
        buf = bytearray((width + 7) // 8)
        for d in doc_ids:
            if d < 0 or d >= width:
                raise ValueError(f"doc id {d} outside universe of {width} docs")
            buf[d >> 3] |= 1 << (d & 7)
        return cls(width, int.from_bytes(buf, "little"))

    def _check(self, other) -> None:
        if not isinstance(other, Bitset):
            raise TypeError(f"cannot combine Bitset with {type(other).__name__}")
        if other.width != self.width:
            raise ValueError(f"bitset widths differ: {self.width} vs {other.width}")

    def __and__(self, other: "Bitset") -> "Bitset":
        self._check(other)
        return Bitset(self.width, self.bits & other.bits)

    def __or__(self, other: "Bitset") -> "Bitset":
        self._check(other)
        return Bitset(self.width, self.bits | other.bits)

    def __invert__(self) -> "Bitset":
        return Bitset(self.width, ~self.bits)

    def __eq__(self, other) -> bool:
        return isinstance(other, Bitset) and self.width == other.width and self.bits == other.bits

    def __hash__(self):
        return hash((self.width, self.bits))

    def __len__(self) -> int:
        return self.bits.bit_count()

    def __contains__(self, doc_id: int) -> bool:
        return 0 <= doc_id < self.width and bool(self.bits >> doc_id & 1)

    def to_ids(self) -> List[int]:
        out: List[int] = []
        data = self.bits.to_bytes((self.width + 7) // 8, "little")
        for i, byte in enumerate(data):
            if not byte:
                continue
            base = i << 3
            for k in range(8):
                if byte >> k & 1:
                    out.append(base + k)
        return out

    def __repr__(self):
        return f"Bitset(width={self.width}, ids={self.to_ids()})"


# ----------------------------
# Strategy objects
# ----------------------------

class PostingAlgebra:
    """
    Common contract: from_ids / to_ids / and_ / or_ / not_ / empty.
    Subclasses fix the representation.
    """
    name = "abstract"

    def from_ids(self, doc_ids: Iterable[int]):
        raise NotImplementedError

    def to_ids(self, value) -> List[int]:
        raise NotImplementedError

    def and_(self, a, b):
        raise NotImplementedError

    def or_(self, a, b):
        raise NotImplementedError

    def not_(self, a):
        raise NotImplementedError

    def empty(self):
        return self.from_ids(())


class SortedAlgebra(PostingAlgebra):
    """Sorted doc id lists; NOT is taken against the universe given here."""
    name = "sorted"

    def __init__(self, universe: Sequence[int]):
        self.universe = universe

    @staticmethod
    def _check(*values) -> None:
        for v in values:
            if not isinstance(v, list):
                raise TypeError(f"sorted algebra expects list operands, got {type(v).__name__}")

    def from_ids(self, doc_ids: Iterable[int]) -> List[int]:
        return sorted(set(doc_ids))

    def to_ids(self, value: List[int]) -> List[int]:
        self._check(value)
        return list(value)

    def and_(self, a, b):
        self._check(a, b)
        return sorted_and(a, b)

    def or_(self, a, b):
        self._check(a, b)
        return sorted_or(a, b)

    def not_(self, a):
        self._check(a)
        return sorted_not(a, self.universe)


class BitsetAlgebra(PostingAlgebra):
    name = "bitset"

    def __init__(self, width: int):
        self.width = width

    def from_ids(self, doc_ids: Iterable[int]) -> Bitset:
        return Bitset.from_ids(doc_ids, self.width)

    def to_ids(self, value: Bitset) -> List[int]:
        return value.to_ids()

    def and_(self, a, b):
        if not isinstance(a, Bitset):
            raise TypeError(f"bitset algebra expects Bitset operands, got {type(a).__name__}")
        return a & b

    def or_(self, a, b):
        if not isinstance(a, Bitset):
            raise TypeError(f"bitset algebra expects Bitset operands, got {type(a).__name__}")
        return a | b

    def not_(self, a):
        if not isinstance(a, Bitset):
            raise TypeError(f"bitset algebra expects Bitset operands, got {type(a).__name__}")
        return ~a


def make_algebra(representation: str, num_docs: int) -> PostingAlgebra:
    if representation == "sorted":
        return SortedAlgebra(range(num_docs))
    if representation == "bitset":
        return BitsetAlgebra(num_docs)
    raise ValueError(f"unknown representation {representation!r} (use 'sorted' or 'bitset')")
