# tests/test_query.py
import pytest

from blockindex.errors import QuerySyntaxError
from blockindex.query import And, Not, Or, Term, parse_query, terms_of, tokenize


def test_tokenize():
    assert tokenize('был OR NOT(input AND "AND")') == ["был", "OR", "NOT", "(", "input", "AND", '"AND"', ")"]


@pytest.mark.parametrize("text,expected", [
    ("был", Term("был")),
    ("input AND users", And(Term("input"), Term("users"))),
    ("input users", And(Term("input"), Term("users"))),
    ("a OR b AND c", Or(Term("a"), And(Term("b"), Term("c")))),
    ("a AND b OR c", Or(And(Term("a"), Term("b")), Term("c"))),
    ("a OR b OR c", Or(Or(Term("a"), Term("b")), Term("c"))),
    ("NOT a AND b", And(Not(Term("a")), Term("b"))),
    ("NOT NOT a", Not(Not(Term("a")))),
    ("был OR NOT (input AND users)", Or(Term("был"), Not(And(Term("input"), Term("users"))))),
    ("(a OR b) c", And(Or(Term("a"), Term("b")), Term("c"))),
    ('"OR" and', And(Term("OR"), Term("and"))),
])
def test_parse_query(text, expected):
    assert parse_query(text) == expected


@pytest.mark.parametrize("text", [
    "",
    "   ",
    "AND a",
    "a OR",
    "NOT",
    "(a",
    "a)",
    "()",
    '"unterminated',
    'a ""',
])
def test_parse_errors(text):
    with pytest.raises(QuerySyntaxError):
        parse_query(text)


def test_terms_of():
    assert terms_of(parse_query("b OR NOT (a AND b)")) == ["b", "a"]
