"""Tests for the SQLite result cache."""

import asyncio

from webmail_guard.cache import ResultCache
from webmail_guard.models import ScanResult, ScanSource, ScanStatistics
from webmail_guard.providers import GMAIL
from webmail_guard.scanner import ScanOrchestrator

from conftest import make_record


def test_save_and_load(tmp_path):
    """Save a ScanResult and load it back."""
    db_path = tmp_path / "test_cache.db"
    record = make_record(subject="Verify", body="Login now", source=ScanSource.OPENED_VIEW)
    result = ScanResult(record=record, score=55, threats=["credential_request"], degraded=True)

    with ResultCache(db_path=db_path) as cache:
        cache.save_result(result)
        loaded = cache.load_results()

    assert len(loaded) == 1
    restored = loaded[0]
    assert restored.id == record.id
    assert restored.record.subject == "Verify"
    assert restored.record.body == "Login now"
    assert restored.record.source is ScanSource.OPENED_VIEW
    assert restored.score == 55
    assert restored.threats == ["credential_request"]
    assert restored.degraded is True
    assert restored.scanned_at == result.scanned_at


def test_save_same_id_keeps_one_row(tmp_path):
    db_path = tmp_path / "test_cache.db"
    record = make_record()

    with ResultCache(db_path=db_path) as cache:
        cache.save_result(ScanResult(record=record, score=90))
        cache.save_result(ScanResult(record=record, score=40))
        loaded = cache.load_results()

    assert len(loaded) == 1
    assert loaded[0].score == 40


def test_results_ordered_by_score(tmp_path):
    db_path = tmp_path / "test_cache.db"

    with ResultCache(db_path=db_path) as cache:
        for score, subject in [(90, "a"), (20, "b"), (60, "c")]:
            cache.save_result(ScanResult(record=make_record(subject=subject), score=score))
        scores = [r.score for r in cache.load_results()]

    assert scores == [20, 60, 90]


def test_listens_to_orchestrator(tmp_path, gmail_soup, fake_classifier):
    db_path = tmp_path / "test_cache.db"

    with ResultCache(db_path=db_path) as cache:
        orchestrator = ScanOrchestrator(lambda: gmail_soup, GMAIL, fake_classifier, listeners=[cache])
        asyncio.run(orchestrator.run_full_scan())
        loaded = cache.load_results()
        stats = cache.load_latest_stats()

    assert len(loaded) == 3
    assert stats == orchestrator.statistics()


def test_clear(tmp_path):
    """Clearing cache should remove all data."""
    db_path = tmp_path / "test_cache.db"

    with ResultCache(db_path=db_path) as cache:
        cache.save_result(ScanResult(record=make_record(), score=80))
        cache.save_stats(ScanStatistics(total=1, safe=1, average_score=80))
        cache.clear()
        assert cache.load_results() == []
        assert cache.load_latest_stats() is None


def test_get_info(tmp_path):
    """Cache info should return correct stats."""
    db_path = tmp_path / "test_cache.db"

    with ResultCache(db_path=db_path) as cache:
        cache.save_result(ScanResult(record=make_record(subject="a"), score=80))
        cache.save_result(ScanResult(record=make_record(subject="b"), score=30, degraded=True))
        cache.save_stats(ScanStatistics(total=2, safe=1, dangerous=1, average_score=55))
        info = cache.get_info()

    assert info["result_count"] == 2
    assert info["degraded_count"] == 1
    assert info["last_scan_date"] is not None
    assert info["db_file_size"] > 0


def test_empty_cache(tmp_path):
    """Empty cache should return nothing."""
    db_path = tmp_path / "test_cache.db"

    with ResultCache(db_path=db_path) as cache:
        assert cache.load_results() == []
        assert cache.load_latest_stats() is None
        assert cache.get_info()["last_scan_date"] is None
