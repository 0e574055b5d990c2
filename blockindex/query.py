# blockindex/query.py
"""
Boolean query expressions.

Tree nodes: Term, And, Or, Not. parse_query() turns a string such as

    был OR NOT (input AND users)

into a tree. Operators are the upper-case keywords AND, OR, NOT; a double
quoted word is always a term ("AND" searches for the word AND). Precedence
is NOT > AND > OR, binary operators associate to the left, and two
operands with nothing between them are joined by AND.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Union

from blockindex.errors import QuerySyntaxError


@dataclass(frozen=True)
class Term:
    text: str


@dataclass(frozen=True)
class And:
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class Or:
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class Not:
    operand: "Expr"


Expr = Union[Term, And, Or, Not]

_PRECEDENCE = {"OR": 1, "AND": 2, "NOT": 3}


def tokenize(text: str) -> List[str]:
    """Split a query into words, parentheses and quoted terms (kept with their quotes)."""
    tokens: List[str] = []
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if ch.isspace():
            i += 1
            continue
        if ch in "()":
            tokens.append(ch)
            i += 1
            continue
        if ch == '"':
            j = text.find('"', i + 1)
            if j < 0:
                raise QuerySyntaxError(f"unterminated quote at column {i}")
            if j == i + 1:
                raise QuerySyntaxError(f"empty quoted term at column {i}")
            tokens.append(text[i:j + 1])
            i = j + 1
            continue
        j = i
        while j < n and not text[j].isspace() and text[j] not in '()"':
            j += 1
        tokens.append(text[i:j])
        i = j
    return tokens


def _is_operand_start(tok: str) -> bool:
    return tok in ("(", "NOT") or (tok not in _PRECEDENCE and tok != ")")


def _to_postfix(tokens: List[str]) -> List[str]:
    # Shunting-yard with implicit AND between adjacent operands.
    out: List[str] = []
    stack: List[str] = []
    prev_operand = False  # previous token closed an operand
    for tok in tokens:
        if prev_operand and _is_operand_start(tok):
            _push_operator("AND", out, stack)
            prev_operand = False

        if tok == "(":
            stack.append(tok)
        elif tok == ")":
            if not prev_operand:
                raise QuerySyntaxError("expected an operand before ')'")
            while stack and stack[-1] != "(":
                out.append(stack.pop())
            if not stack:
                raise QuerySyntaxError("unbalanced ')'")
            stack.pop()
            prev_operand = True
            continue
        elif tok == "NOT":
            stack.append(tok)  # prefix, right-assoc: never pops anything
        elif tok in _PRECEDENCE:
            if not prev_operand:
                raise QuerySyntaxError(f"operator {tok} is missing its left operand")
            _push_operator(tok, out, stack)
        else:
            out.append(tok)
            prev_operand = True
            continue
        prev_operand = False

    if not prev_operand:
        raise QuerySyntaxError("query ends without an operand" if tokens else "empty query")
    while stack:
        top = stack.pop()
        if top == "(":
            raise QuerySyntaxError("unbalanced '('")
        out.append(top)
    return out


def _push_operator(op: str, out: List[str], stack: List[str]) -> None:
    while stack and stack[-1] != "(" and _PRECEDENCE[stack[-1]] >= _PRECEDENCE[op]:
        out.append(stack.pop())
    stack.append(op)


def parse_query(text: str) -> Expr:
    """Parse a boolean query string into an expression tree."""
    postfix = _to_postfix(tokenize(text))
    st: List[Expr] = []
    for tok in postfix:
        if tok == "NOT":
            st.append(Not(st.pop()))
        elif tok in ("AND", "OR"):
            right = st.pop()
            left = st.pop()
            st.append(And(left, right) if tok == "AND" else Or(left, right))
        elif tok.startswith('"'):
            st.append(Term(tok[1:-1]))
        else:
            st.append(Term(tok))
    return st[0]


def terms_of(expr: Expr) -> List[str]:
    """Distinct term texts in left-to-right order."""
    seen: List[str] = []

    def walk(e: Expr):
        if isinstance(e, Term):
            if e.text not in seen:
                seen.append(e.text)
        elif isinstance(e, Not):
            walk(e.operand)
        else:
            walk(e.left)
            walk(e.right)

    walk(expr)
    return seen
