"""Tests for vibecore/learning/corrections.py

The correction log is bounded by count (FIFO) and by age, kept in
timestamp order, and degrades to an empty log when the stored document
cannot be read.
"""

from datetime import timedelta, timezone

import pytest

from tests.conftest import BASE_TIME
from vibecore.config_models import CorrectionsConfig
from vibecore.learning import corrections


# ─────────────────────────────────────────────────────────────────────────────
# Pure operations
# ─────────────────────────────────────────────────────────────────────────────


class TestAppendRecord:
    def test_appends_in_order(self, make_record):
        first = make_record("chill", timestamp=BASE_TIME)
        second = make_record("hype", timestamp=BASE_TIME + timedelta(hours=1))
        log = corrections.append_record([first], second, now=second.timestamp)
        assert log == [first, second]

    def test_out_of_order_append_is_sorted(self, make_record):
        later = make_record("chill", timestamp=BASE_TIME + timedelta(hours=2))
        earlier = make_record("hype", timestamp=BASE_TIME)
        log = corrections.append_record([later], earlier, now=later.timestamp)
        assert [r.corrected.value for r in log] == ["hype", "chill"]

    def test_evicts_oldest_beyond_cap(self, make_record):
        config = CorrectionsConfig(max_records=5)
        log = []
        records = [make_record("chill", timestamp=BASE_TIME + timedelta(minutes=i)) for i in range(8)]
        for record in records:
            log = corrections.append_record(log, record, config, now=record.timestamp)

        assert len(log) == 5
        assert log == records[-5:]

    def test_default_cap_is_exact(self, make_record):
        log = []
        for i in range(205):
            record = make_record("focused", timestamp=BASE_TIME + timedelta(minutes=i))
            log = corrections.append_record(log, record, now=record.timestamp)
        assert len(log) == 200
        assert log[0].timestamp == BASE_TIME + timedelta(minutes=5)

    def test_does_not_mutate_input(self, make_record):
        log = [make_record("chill")]
        corrections.append_record(log, make_record("hype"), now=BASE_TIME)
        assert len(log) == 1


class TestPruneExpired:
    def test_drops_old_records(self, make_record):
        old = make_record("chill", timestamp=BASE_TIME - timedelta(days=91))
        fresh = make_record("hype", timestamp=BASE_TIME - timedelta(days=10))
        assert corrections.prune_expired([old, fresh], now=BASE_TIME) == [fresh]

    def test_custom_age(self, make_record):
        record = make_record("chill", timestamp=BASE_TIME - timedelta(days=3))
        config = CorrectionsConfig(max_age_days=2)
        assert corrections.prune_expired([record], config, now=BASE_TIME) == []

    def test_aware_now(self, make_record):
        record = make_record("chill", timestamp=BASE_TIME - timedelta(days=10))
        now = BASE_TIME.astimezone(timezone.utc)
        assert corrections.prune_expired([record], now=now) == [record]


class TestSerialization:
    def test_round_trip(self, make_record):
        log = [
            make_record("chill", venue="cafe"),
            make_record("hype", timestamp=BASE_TIME + timedelta(hours=1)),
        ]
        assert corrections.deserialize_log(corrections.serialize_log(log)) == log

    def test_rejects_wrong_version(self):
        with pytest.raises(ValueError, match="version"):
            corrections.deserialize_log({"version": 2, "records": []})

    def test_rejects_malformed_record(self):
        with pytest.raises(ValueError):
            corrections.deserialize_log({"version": 1, "records": [{"timestamp": "x"}]})

    def test_mixed_offset_and_naive_timestamps(self, make_record):
        naive = make_record("hype", timestamp=BASE_TIME + timedelta(hours=1)).to_dict()
        aware = make_record("chill").to_dict()
        aware["timestamp"] = "2026-03-02T09:00:00+00:00"

        log = corrections.deserialize_log({"version": 1, "records": [naive, aware]})

        assert all(r.timestamp.tzinfo is None for r in log)
        assert [r.timestamp for r in log] == sorted(r.timestamp for r in log)

    def test_hash_changes_with_content(self, make_record):
        log = [make_record("chill")]
        longer = [*log, make_record("hype", timestamp=BASE_TIME + timedelta(hours=1))]
        assert corrections.log_hash(log) == corrections.log_hash(list(log))
        assert corrections.log_hash(log) != corrections.log_hash(longer)


class TestRecordsSince:
    def test_none_returns_everything(self, make_log):
        log = make_log(["chill", "hype"])
        assert corrections.records_since(log, None) == log

    def test_strictly_newer(self, make_log):
        log = make_log(["chill", "hype", "down"])
        assert corrections.records_since(log, log[0].timestamp) == log[1:]


# ─────────────────────────────────────────────────────────────────────────────
# Persistence
# ─────────────────────────────────────────────────────────────────────────────


class TestPersistence:
    def test_missing_log_is_empty(self, vibe_store, mock_user_id):
        result = corrections.load_corrections(mock_user_id)
        assert result.ok is True
        assert result.value == []

    def test_save_then_load(self, vibe_store, mock_user_id, make_log):
        log = make_log(["chill", "hype", "focused"], venue="library")
        saved = corrections.save_corrections(mock_user_id, log)
        assert saved["success"] is True
        assert saved["count"] == 3
        assert corrections.load_corrections(mock_user_id).value == log

    def test_corrupt_log_degrades_to_empty(self, vibe_store, mock_user_id):
        vibe_store.write_json(vibe_store.corrections_key(mock_user_id), {"version": 1, "records": 7})
        result = corrections.load_corrections(mock_user_id)
        assert result.ok is False
        assert result.value == []

    def test_mixed_timestamp_log_loads(self, vibe_store, mock_user_id, make_record):
        aware = make_record("chill").to_dict()
        aware["timestamp"] = "2026-03-02T09:00:00+00:00"
        naive = make_record("hype").to_dict()
        vibe_store.write_json(
            vibe_store.corrections_key(mock_user_id), {"version": 1, "records": [aware, naive]}
        )

        result = corrections.load_corrections(mock_user_id)

        assert result.ok is True
        assert len(result.value) == 2
        assert all(r.timestamp.tzinfo is None for r in result.value)

    def test_unparseable_log_degrades_to_empty(self, vibe_store, mock_user_id):
        vibe_store.write_raw(vibe_store.corrections_key(mock_user_id), "[[[")
        result = corrections.load_corrections(mock_user_id)
        assert result.ok is False
        assert result.value == []
