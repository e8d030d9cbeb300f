"""Tests for vibecore/engine/labels.py and vibecore/engine/models.py

The label and category sets are closed; every table keyed by them must be
exhaustive. FeatureVector must tolerate whatever a feature provider hands
it, while CorrectionContext rejects genuinely invalid input.
"""

from datetime import datetime, timezone

import pytest

from vibecore.engine.labels import (
    BASE_WEIGHTS,
    CATEGORIES,
    LABEL_ENERGY,
    LABELS,
    FeatureCategory,
    Label,
    label_energy,
)
from vibecore.engine.models import (
    CorrectionContext,
    CorrectionRecord,
    FeatureVector,
    top_label,
    vector_from_dict,
    vector_to_dict,
)


# ─────────────────────────────────────────────────────────────────────────────
# Labels
# ─────────────────────────────────────────────────────────────────────────────


class TestLabels:
    """Tests for the closed label enumeration."""

    def test_twelve_labels(self):
        assert len(LABELS) == 12

    def test_parse_accepts_label_and_string(self):
        assert Label.parse(Label.CHILL) is Label.CHILL
        assert Label.parse("chill") is Label.CHILL
        assert Label.parse("  Hype ") is Label.HYPE

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValueError, match="Invalid vibe label"):
            Label.parse("sleepy")

    def test_base_weights_exhaustive(self):
        assert set(BASE_WEIGHTS) == set(CATEGORIES)
        for row in BASE_WEIGHTS.values():
            assert set(row) == set(LABELS)

    def test_label_energy_exhaustive(self):
        assert set(LABEL_ENERGY) == set(LABELS)
        assert all(0.0 <= v <= 1.0 for v in LABEL_ENERGY.values())

    def test_label_energy_unknown_is_neutral(self):
        assert label_energy("sleepy") == 0.5
        assert label_energy(Label.DOWN) == 0.1


# ─────────────────────────────────────────────────────────────────────────────
# FeatureVector
# ─────────────────────────────────────────────────────────────────────────────


class TestFeatureVector:
    """Tests for tolerant feature input."""

    def test_missing_keys_read_as_zero(self):
        features = FeatureVector.from_mapping({"circadian": 0.7})
        assert features.circadian == 0.7
        assert features.movement == 0.0
        assert features.weather == 0.0

    def test_none_and_garbage_read_as_zero(self):
        features = FeatureVector.from_mapping(
            {"circadian": None, "movement": "fast", "weather": float("nan")}
        )
        assert features.values() == [0.0, 0.0, 0.0, 0.0, 0.0]

    def test_values_clamped(self):
        features = FeatureVector.from_mapping({"circadian": 1.7, "movement": -0.3})
        assert features.circadian == 1.0
        assert features.movement == 0.0

    def test_key_spellings(self):
        features = FeatureVector.from_mapping(
            {"venue-energy": 0.4, "deviceUsage": 0.3, "unknown": 0.9}
        )
        assert features.venue_energy == 0.4
        assert features.device_usage == 0.3

    def test_enum_keys(self):
        features = FeatureVector.from_mapping({FeatureCategory.WEATHER: 0.25})
        assert features.get(FeatureCategory.WEATHER) == 0.25

    def test_to_dict_uses_category_values(self):
        features = FeatureVector(circadian=0.2)
        assert features.to_dict() == {
            "circadian": 0.2,
            "movement": 0.0,
            "venue_energy": 0.0,
            "device_usage": 0.0,
            "weather": 0.0,
        }


# ─────────────────────────────────────────────────────────────────────────────
# Vectors
# ─────────────────────────────────────────────────────────────────────────────


class TestVibeVectorHelpers:
    def test_vector_from_dict_drops_unknown(self):
        vector = vector_from_dict({"chill": 0.6, "sleepy": 0.4})
        assert vector[Label.CHILL] == 0.6
        assert set(vector) == set(LABELS)
        assert sum(vector.values()) == pytest.approx(0.6)

    def test_vector_to_dict_covers_all_labels(self):
        assert set(vector_to_dict({Label.HYPE: 1.0})) == {label.value for label in LABELS}

    def test_top_label_ties_resolve_in_order(self):
        vector = {label: 1.0 / len(LABELS) for label in LABELS}
        assert top_label(vector) is Label.HYPE


# ─────────────────────────────────────────────────────────────────────────────
# Corrections
# ─────────────────────────────────────────────────────────────────────────────


class TestCorrectionContext:
    def test_from_timestamp(self):
        # 2026-03-07 is a Saturday
        context = CorrectionContext.from_timestamp(datetime(2026, 3, 7, 22, 15), venue="bar")
        assert context.hour == 22
        assert context.weekday == 5
        assert context.is_weekend is True
        assert context.venue == "bar"

    def test_blank_venue_becomes_none(self):
        assert CorrectionContext(hour=9, weekday=0, venue="   ").venue is None

    @pytest.mark.parametrize("hour", [-1, 24])
    def test_invalid_hour(self, hour):
        with pytest.raises(ValueError, match="Invalid hour"):
            CorrectionContext(hour=hour, weekday=0)

    def test_invalid_weekday(self):
        with pytest.raises(ValueError, match="Invalid weekday"):
            CorrectionContext(hour=9, weekday=7)


class TestCorrectionRecord:
    def test_round_trip(self, make_record):
        record = make_record("chill", predicted="hype", venue="cafe", dwell_minutes=30)
        assert CorrectionRecord.from_dict(record.to_dict()) == record

    def test_predicted_probability(self, make_record):
        record = make_record("chill", predicted="hype")
        assert record.predicted_probability(Label.HYPE) == 0.5

    def test_from_dict_rejects_unknown_label(self, make_record):
        data = make_record("chill").to_dict()
        data["corrected"] = "sleepy"
        with pytest.raises(ValueError):
            CorrectionRecord.from_dict(data)

    def test_aware_timestamp_stored_as_local_naive(self, make_record):
        aware = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
        record = make_record("chill", timestamp=aware)
        assert record.timestamp.tzinfo is None
        assert record.timestamp == aware.astimezone().replace(tzinfo=None)

    def test_from_dict_normalizes_offset_timestamp(self, make_record):
        data = make_record("chill").to_dict()
        data["timestamp"] = "2026-03-02T09:00:00+00:00"
        record = CorrectionRecord.from_dict(data)
        expected = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert record.timestamp == expected
