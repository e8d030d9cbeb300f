"""Tests for vibecore/analysis/pattern_cache.py"""

from datetime import timedelta

from tests.conftest import BASE_TIME
from vibecore.analysis.pattern_cache import PatternCache, PatternSnapshot
from vibecore.config_models import InsightsConfig

INSIGHT = {"has_enough_data": False, "sample_size": 0}


class TestPatternSnapshot:
    def test_fresh_within_ttl(self):
        snapshot = PatternSnapshot(insight=INSIGHT, log_hash="abc", computed_at=BASE_TIME)
        assert snapshot.is_fresh("abc", timedelta(hours=24), now=BASE_TIME + timedelta(hours=23))

    def test_stale_after_ttl(self):
        snapshot = PatternSnapshot(insight=INSIGHT, log_hash="abc", computed_at=BASE_TIME)
        assert not snapshot.is_fresh("abc", timedelta(hours=24), now=BASE_TIME + timedelta(hours=24))

    def test_hash_mismatch(self):
        snapshot = PatternSnapshot(insight=INSIGHT, log_hash="abc", computed_at=BASE_TIME)
        assert not snapshot.is_fresh("def", timedelta(hours=24), now=BASE_TIME)

    def test_old_version(self):
        snapshot = PatternSnapshot(insight=INSIGHT, log_hash="abc", computed_at=BASE_TIME, version=0)
        assert not snapshot.is_fresh("abc", timedelta(hours=24), now=BASE_TIME)


class TestPatternCache:
    def test_miss_when_empty(self, vibe_store, mock_user_id):
        assert PatternCache().get(mock_user_id, "abc") is None

    def test_hit_after_put(self, vibe_store, mock_user_id):
        cache = PatternCache()
        cache.put(mock_user_id, INSIGHT, "abc", now=BASE_TIME)

        snapshot = cache.get(mock_user_id, "abc", now=BASE_TIME + timedelta(hours=1))
        assert snapshot is not None
        assert snapshot.insight == INSIGHT
        assert snapshot.computed_at == BASE_TIME

    def test_changed_log_misses(self, vibe_store, mock_user_id):
        cache = PatternCache()
        cache.put(mock_user_id, INSIGHT, "abc", now=BASE_TIME)
        assert cache.get(mock_user_id, "xyz", now=BASE_TIME) is None

    def test_custom_ttl(self, vibe_store, mock_user_id):
        cache = PatternCache(InsightsConfig(cache_ttl_hours=1))
        cache.put(mock_user_id, INSIGHT, "abc", now=BASE_TIME)
        assert cache.get(mock_user_id, "abc", now=BASE_TIME + timedelta(hours=2)) is None

    def test_corrupt_snapshot_misses(self, vibe_store, mock_user_id):
        vibe_store.write_json(vibe_store.pattern_cache_key(mock_user_id), {"insight": "nope"})
        assert PatternCache().get(mock_user_id, "abc") is None

    def test_invalidate(self, vibe_store, mock_user_id):
        cache = PatternCache()
        cache.put(mock_user_id, INSIGHT, "abc", now=BASE_TIME)
        assert cache.invalidate(mock_user_id)["deleted"] == 1
        assert cache.get(mock_user_id, "abc", now=BASE_TIME) is None
