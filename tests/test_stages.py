"""Tests for per-run stage tracking."""

from sentro.pipeline.stages import STAGE_NAMES, new_stages, stage_stats


def test_new_stages_are_fresh_per_call():
    first = new_stages()
    second = new_stages()

    assert [s.name for s in first] == [name for name, _ in STAGE_NAMES]
    assert all(a is not b for a, b in zip(first, second))


def test_stage_stats_only_reports_started_stages():
    sources, fetch, dedup, persist = new_stages()
    sources.start()
    sources.complete({"total_sources": 2})
    fetch.start()
    fetch.fail("boom")

    stats = stage_stats([sources, fetch, dedup, persist])

    assert set(stats) == {"sources", "fetch"}
    assert stats["sources"]["success"] is True
    assert stats["sources"]["stats"] == {"total_sources": 2}
    assert stats["fetch"]["success"] is False
    assert stats["fetch"]["error"] == "boom"


def test_running_until_finished():
    stage = new_stages()[0]
    assert stage.running is False

    stage.start()
    assert stage.running is True

    stage.complete()
    assert stage.running is False
