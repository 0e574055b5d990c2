# tests/test_parser.py
import pytest

from blockindex.parser import Parser, Token


@pytest.mark.parametrize("text,expected", [
    ("input users", ["input", "users"]),
    ("Был, input.", ["Был", "input"]),
    ("Hello (world)!", ["Hello", "world"]),
    ("a — b · c", ["a", "b", "c"]),
    ("COVID-19 isn't", ["COVID-19", "isn't"]),
    ("FORTRAN; Fortran?", ["FORTRAN", "Fortran"]),
    ("...", []),
    ("", []),
])
def test_terms(text, expected):
    assert Parser().terms(text) == expected


def test_tokenize_flags_punctuation():
    assert Parser().tokenize("hi, you") == [Token("hi", False), Token(",", True), Token("you", False)]


def test_symbols_outside_the_set_are_kept():
    # only the configured punctuation set is dropped
    assert Parser().terms("a + b") == ["a", "+", "b"]
    assert Parser(punctuation={"+"}).terms("a + b.") == ["a", "b", "."]


def test_convert_fixes_entities_and_mojibake(tmp_path):
    p = tmp_path / "doc.txt"
    p.write_text("caf&eacute; and cafÃ©", encoding="utf-8")
    assert Parser().convert(str(p)) == "café and café"


def test_iter_documents_sorted_files_only(tmp_path):
    for name in ("b.txt", "a.txt", ".hidden"):
        (tmp_path / name).write_text("x", encoding="utf-8")
    (tmp_path / "sub").mkdir()
    paths = list(Parser().iter_documents(str(tmp_path)))
    assert paths == [str(tmp_path / "a.txt"), str(tmp_path / "b.txt")]
