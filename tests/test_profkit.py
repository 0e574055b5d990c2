# tests/test_profkit.py
from blockindex import profkit
from blockindex.config import IndexConfig
from blockindex.indexer import Indexer


def test_disabled_counters_stay_empty(monkeypatch, capsys):
    monkeypatch.setattr(profkit, "ENABLED", False)
    profkit.reset()
    profkit.tick("x")
    with profkit.timeit("y_ms"):
        pass
    profkit.report()
    assert dict(profkit.COUNTERS) == {}
    assert capsys.readouterr().out == ""


def test_build_fills_counters(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(profkit, "ENABLED", True)
    profkit.reset()
    ix = Indexer(IndexConfig.under(str(tmp_path), block_capacity=2, progress_every=0))
    ix.reset_workspace()
    ix.add_document("a", ["x", "y", "x"])
    ix.add_document("b", ["y"])
    ix.finish()

    c = profkit.COUNTERS
    assert c["build.blocks"] == 2
    assert c["build.bytes"] > 0
    assert c["merge.shards_read"] == 2
    assert c["merge.postings"] == 3  # x -> [a], y -> [a, b]
    assert "build.sort_ms" in c and "merge.read_ms" in c
    assert "[profkit] merge.postings" in capsys.readouterr().out
    profkit.reset()
