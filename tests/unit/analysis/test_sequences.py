"""Tests for vibecore/analysis/sequences.py

Covers n-gram counting with its span limit, weekend and venue triggers,
and how matching sequences are combined into next-vibe predictions.
"""

from datetime import timedelta

import pytest

from vibecore.analysis.sequences import (
    BehaviorSequence,
    TriggerStrength,
    TriggerType,
    detect_sequences,
    detect_triggers,
    detect_venue_triggers,
    detect_weekend_triggers,
    grade_strength,
    predict_next_vibe,
)
from vibecore.engine.labels import Label


def _sequence(labels, next_probabilities, confidence):
    return BehaviorSequence(
        labels=tuple(labels),
        next_probabilities=next_probabilities,
        confidence=confidence,
        sample_size=5,
        avg_duration_minutes=60.0,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Sequences
# ─────────────────────────────────────────────────────────────────────────────


class TestDetectSequences:
    def test_counts_recurring_pair(self, make_log):
        # chill, hype three times, then down after the last pair
        log = make_log(["chill", "hype", "chill", "hype", "chill", "hype", "down"])
        sequences = detect_sequences(log)

        assert len(sequences) == 1
        (sequence,) = sequences
        assert sequence.labels == (Label.CHILL, Label.HYPE)
        assert sequence.sample_size == 3
        assert sequence.next_probabilities == pytest.approx({Label.CHILL: 2 / 3, Label.DOWN: 1 / 3})
        assert sequence.confidence == pytest.approx(3 / 8)
        assert sequence.avg_duration_minutes == pytest.approx(60.0)
        assert sequence.describe() == "chill → hype"

    def test_short_log_yields_nothing(self, make_log):
        assert detect_sequences(make_log(["chill", "hype"] * 2 + ["chill"])) == []

    def test_runs_spanning_too_long_are_skipped(self, make_log):
        log = make_log(["chill", "hype"] * 6, step=timedelta(hours=5))
        assert detect_sequences(log) == []

    def test_sorted_by_confidence(self, make_log):
        sequences = detect_sequences(make_log(["chill", "hype"] * 6))
        confidences = [s.confidence for s in sequences]
        assert confidences == sorted(confidences, reverse=True)
        assert confidences[0] == pytest.approx(5 / 8)

    def test_unsorted_input_is_ordered_by_time(self, make_log):
        log = make_log(["chill", "hype", "chill", "hype", "chill", "hype", "down"])
        assert detect_sequences(list(reversed(log))) == detect_sequences(log)


# ─────────────────────────────────────────────────────────────────────────────
# Triggers
# ─────────────────────────────────────────────────────────────────────────────


class TestGradeStrength:
    @pytest.mark.parametrize(
        "margin,expected",
        [
            (0.3, TriggerStrength.WEAK),
            (0.35, TriggerStrength.MODERATE),
            (0.45, TriggerStrength.STRONG),
        ],
    )
    def test_thresholds(self, margin, expected):
        assert grade_strength(margin, moderate=0.3, strong=0.4) is expected


class TestWeekendTriggers:
    def test_weekend_only_label(self, make_record):
        records = [make_record("focused", weekday=0) for _ in range(4)] + [
            make_record("social", weekday=5) for _ in range(4)
        ]
        (trigger,) = detect_weekend_triggers(records)

        assert trigger.type is TriggerType.TEMPORAL
        assert trigger.condition == "weekend"
        assert trigger.resulting_label is Label.SOCIAL
        assert trigger.probability == 1.0
        assert trigger.confidence == pytest.approx(0.4)
        assert trigger.strength is TriggerStrength.STRONG

    def test_needs_both_groups(self, make_record):
        records = [make_record("social", weekday=6) for _ in range(5)]
        assert detect_weekend_triggers(records) == []


class TestVenueTriggers:
    def test_dominant_label_at_venue(self, make_record):
        records = [
            make_record("social", venue="cafe"),
            make_record("social", venue="cafe"),
            make_record("social", venue="cafe"),
            make_record("chill", venue="cafe"),
            make_record("focused", venue="library"),
            make_record("focused", venue="library"),
        ]
        (trigger,) = detect_venue_triggers(records)

        assert trigger.type is TriggerType.VENUE
        assert trigger.condition == "cafe"
        assert trigger.resulting_label is Label.SOCIAL
        assert trigger.probability == pytest.approx(0.75)
        assert trigger.confidence == pytest.approx(0.5)
        assert trigger.strength is TriggerStrength.STRONG

    def test_low_confidence_triggers_filtered(self, make_record):
        records = [make_record("focused", weekday=1) for _ in range(3)] + [
            make_record("social", weekday=5, venue="club") for _ in range(3)
        ]
        triggers = detect_triggers(records)

        # The weekend trigger sits at exactly 0.3 confidence and is dropped
        assert [(t.type, t.condition) for t in triggers] == [(TriggerType.VENUE, "club")]


# ─────────────────────────────────────────────────────────────────────────────
# Prediction
# ─────────────────────────────────────────────────────────────────────────────


class TestPredictNextVibe:
    def test_low_probability_followers_ignored(self):
        sequences = [_sequence([Label.CHILL], {Label.HYPE: 0.95, Label.DOWN: 0.05}, 0.5)]
        result = predict_next_vibe(Label.CHILL, sequences, hour=9, is_weekend=False)
        assert [p.label for p in result.predictions] == [Label.HYPE]

    def test_contributions_sum_and_clamp(self):
        sequences = [
            _sequence([Label.FOCUSED, Label.CHILL], {Label.HYPE: 1.0}, 0.8),
            _sequence([Label.CHILL], {Label.HYPE: 1.0}, 0.6),
        ]
        (prediction,) = predict_next_vibe(Label.CHILL, sequences, hour=9, is_weekend=False).predictions
        assert prediction.probability == 1.0
        assert prediction.confidence == 0.8
        assert prediction.reasoning == "focused → chill pattern (100%)"

    def test_ties_follow_label_order(self):
        sequences = [_sequence([Label.CHILL], {Label.DOWN: 0.5, Label.HYPE: 0.5}, 1.0)]
        result = predict_next_vibe(Label.CHILL, sequences, hour=9, is_weekend=False)
        assert [p.label for p in result.predictions] == [Label.HYPE, Label.DOWN]

    def test_context_factors(self):
        sequences = [_sequence([Label.CHILL], {Label.HYPE: 1.0}, 1.0)]
        result = predict_next_vibe(Label.CHILL, sequences, hour=18, is_weekend=True, venue="gym")
        assert result.context_factors == ["At gym", "evening on weekend"]

    def test_unconfident_sequences_give_no_prediction(self):
        sequences = [_sequence([Label.CHILL], {Label.HYPE: 1.0}, 0.4)]
        result = predict_next_vibe(Label.CHILL, sequences, hour=9, is_weekend=False)
        assert result.predictions == []
        assert result.context_factors == ["Insufficient pattern data for predictions"]

    def test_other_current_label_ignored(self):
        sequences = [_sequence([Label.CHILL], {Label.HYPE: 1.0}, 1.0)]
        result = predict_next_vibe(Label.SOLO, sequences, hour=13, is_weekend=False)
        assert result.predictions == []
