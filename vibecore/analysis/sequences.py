"""
Tool: Sequence Detector
Purpose: Learn which vibe tends to follow which

Three passes over the time-ordered correction log:

1. detect_sequences: every contiguous run of 2-4 corrected labels, plus the
   label that came right after it, within an 8 hour span. A run reported
   at least min_samples times becomes a BehaviorSequence.
2. detect_triggers: labels that are over-represented on weekends or at a
   particular venue.
3. predict_next_vibe: given the current label, combine every confident
   sequence ending in it into a ranked list of likely next labels.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from enum import Enum
from statistics import fmean
from typing import Any

from vibecore.config_models import SequencesConfig
from vibecore.engine.labels import LABELS, Label
from vibecore.engine.models import CorrectionRecord


class TriggerType(str, Enum):
    TEMPORAL = "temporal"
    VENUE = "venue"


class TriggerStrength(str, Enum):
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


@dataclass
class BehaviorSequence:
    """A run of labels and what followed it."""

    labels: tuple[Label, ...]
    next_probabilities: dict[Label, float]
    confidence: float
    sample_size: int
    avg_duration_minutes: float

    @property
    def last(self) -> Label:
        return self.labels[-1]

    def describe(self) -> str:
        return " → ".join(label.value for label in self.labels)

    def to_dict(self) -> dict[str, Any]:
        return {
            "labels": [label.value for label in self.labels],
            "next_probabilities": {k.value: round(v, 4) for k, v in self.next_probabilities.items()},
            "confidence": round(self.confidence, 4),
            "sample_size": self.sample_size,
            "avg_duration_minutes": round(self.avg_duration_minutes, 2),
        }


@dataclass
class TriggerPattern:
    """A context that makes one label noticeably more likely."""

    type: TriggerType
    condition: str
    resulting_label: Label
    probability: float
    confidence: float
    strength: TriggerStrength

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "condition": self.condition,
            "resulting_label": self.resulting_label.value,
            "probability": round(self.probability, 4),
            "confidence": round(self.confidence, 4),
            "strength": self.strength.value,
        }


@dataclass
class NextVibePrediction:
    label: Label
    probability: float
    confidence: float
    reasoning: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label.value,
            "probability": round(self.probability, 4),
            "confidence": round(self.confidence, 4),
            "reasoning": self.reasoning,
        }


@dataclass
class PredictiveInsight:
    current: Label
    predictions: list[NextVibePrediction] = field(default_factory=list)
    context_factors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "current": self.current.value,
            "predictions": [p.to_dict() for p in self.predictions],
            "context_factors": self.context_factors,
        }


def _frequencies(labels: list[Label]) -> dict[Label, float]:
    counts = Counter(labels)
    total = len(labels)
    return {label: counts[label] / total for label in LABELS if counts[label]}


# ─────────────────────────────────────────────────────────────────────────────
# Sequences
# ─────────────────────────────────────────────────────────────────────────────


def detect_sequences(
    records: list[CorrectionRecord], config: SequencesConfig | None = None
) -> list[BehaviorSequence]:
    """
    Extract recurring label runs from the correction log.

    A run of length n starting at i is counted only if record i + n exists
    and lies within max_gap_hours of record i. Logs shorter than
    2 * min_samples produce nothing.

    Returns:
        Sequences ordered by confidence, highest first
    """
    config = config or SequencesConfig()
    if len(records) < config.min_samples * 2:
        return []

    ordered = sorted(records, key=lambda r: r.timestamp)
    max_gap_seconds = config.max_gap_hours * 3600

    followers: dict[tuple[Label, ...], list[Label]] = defaultdict(list)
    durations: dict[tuple[Label, ...], list[float]] = defaultdict(list)

    for length in range(config.min_length, config.max_length + 1):
        for start in range(len(ordered) - length):
            run = ordered[start : start + length]
            following = ordered[start + length]

            elapsed = (following.timestamp - run[0].timestamp).total_seconds()
            if elapsed > max_gap_seconds:
                continue

            key = tuple(r.corrected for r in run)
            followers[key].append(following.corrected)
            durations[key].append(elapsed / 60)

    sequences = []
    for key, next_labels in followers.items():
        sample_size = len(next_labels)
        if sample_size < config.min_samples:
            continue
        sequences.append(
            BehaviorSequence(
                labels=key,
                next_probabilities=_frequencies(next_labels),
                confidence=min(1.0, sample_size / config.confidence_saturation),
                sample_size=sample_size,
                avg_duration_minutes=fmean(durations[key]),
            )
        )

    sequences.sort(key=lambda s: s.confidence, reverse=True)
    return sequences


# ─────────────────────────────────────────────────────────────────────────────
# Triggers
# ─────────────────────────────────────────────────────────────────────────────


def grade_strength(margin: float, moderate: float, strong: float) -> TriggerStrength:
    if margin > strong:
        return TriggerStrength.STRONG
    if margin > moderate:
        return TriggerStrength.MODERATE
    return TriggerStrength.WEAK


def detect_weekend_triggers(
    records: list[CorrectionRecord], config: SequencesConfig | None = None
) -> list[TriggerPattern]:
    """Labels whose weekend share beats their weekday share by weekend_margin."""
    config = config or SequencesConfig()

    weekend = [r.corrected for r in records if r.context.is_weekend]
    weekday = [r.corrected for r in records if not r.context.is_weekend]
    if len(weekend) < config.min_group_samples or len(weekday) < config.min_group_samples:
        return []

    weekend_freq = _frequencies(weekend)
    weekday_freq = _frequencies(weekday)

    triggers = []
    for label, share in weekend_freq.items():
        margin = share - weekday_freq.get(label, 0.0)
        if margin <= config.weekend_margin:
            continue
        triggers.append(
            TriggerPattern(
                type=TriggerType.TEMPORAL,
                condition="weekend",
                resulting_label=label,
                probability=share,
                confidence=min(1.0, len(weekend) / 10),
                strength=grade_strength(
                    margin, config.weekend_margin + 0.1, config.weekend_margin + 0.2
                ),
            )
        )
    return triggers


def detect_venue_triggers(
    records: list[CorrectionRecord], config: SequencesConfig | None = None
) -> list[TriggerPattern]:
    """Labels chosen at a venue more than venue_min_probability of the time."""
    config = config or SequencesConfig()

    by_venue: dict[str, list[Label]] = defaultdict(list)
    for record in records:
        if record.venue:
            by_venue[record.venue].append(record.corrected)

    triggers = []
    for venue in sorted(by_venue):
        labels = by_venue[venue]
        if len(labels) < config.venue_min_samples:
            continue
        for label, probability in _frequencies(labels).items():
            if probability <= config.venue_min_probability:
                continue
            triggers.append(
                TriggerPattern(
                    type=TriggerType.VENUE,
                    condition=venue,
                    resulting_label=label,
                    probability=probability,
                    confidence=min(1.0, len(labels) / config.confidence_saturation),
                    strength=grade_strength(
                        probability,
                        config.venue_min_probability + 0.1,
                        config.venue_min_probability + 0.2,
                    ),
                )
            )
    return triggers


def detect_triggers(
    records: list[CorrectionRecord], config: SequencesConfig | None = None
) -> list[TriggerPattern]:
    config = config or SequencesConfig()

    triggers = [*detect_weekend_triggers(records, config), *detect_venue_triggers(records, config)]
    confident = [t for t in triggers if t.confidence > config.trigger_min_confidence]
    confident.sort(key=lambda t: t.confidence, reverse=True)
    return confident[: config.max_triggers]


# ─────────────────────────────────────────────────────────────────────────────
# Prediction
# ─────────────────────────────────────────────────────────────────────────────


def _time_of_day(hour: int) -> str:
    if hour < 12:
        return "morning"
    if hour < 17:
        return "afternoon"
    return "evening"


def predict_next_vibe(
    current: Label,
    sequences: list[BehaviorSequence],
    hour: int,
    is_weekend: bool,
    venue: str | None = None,
    config: SequencesConfig | None = None,
) -> PredictiveInsight:
    """
    Rank likely next labels after current.

    Each matching sequence contributes probability * sequence confidence to
    every follower at or above prediction_min_probability. Totals are
    clamped to 1 and the strongest max_predictions are returned.
    """
    config = config or SequencesConfig()

    relevant = [
        s for s in sequences if s.last == current and s.confidence > config.prediction_min_confidence
    ]
    if not relevant:
        return PredictiveInsight(
            current=current,
            context_factors=["Insufficient pattern data for predictions"],
        )

    totals: dict[Label, float] = defaultdict(float)
    best_confidence: dict[Label, float] = defaultdict(float)
    reasons: dict[Label, list[tuple[float, str]]] = defaultdict(list)

    for sequence in relevant:
        for label, probability in sequence.next_probabilities.items():
            if probability < config.prediction_min_probability:
                continue
            totals[label] += probability * sequence.confidence
            best_confidence[label] = max(best_confidence[label], sequence.confidence)
            reasons[label].append(
                (
                    probability * sequence.confidence,
                    f"{sequence.describe()} pattern ({round(probability * 100)}%)",
                )
            )

    predictions = [
        NextVibePrediction(
            label=label,
            probability=min(1.0, total),
            confidence=best_confidence[label],
            reasoning=max(reasons[label], key=lambda item: item[0])[1],
        )
        for label, total in totals.items()
    ]
    predictions.sort(key=lambda p: (-p.probability, LABELS.index(p.label)))

    context_factors = []
    if venue:
        context_factors.append(f"At {venue}")
    context_factors.append(f"{_time_of_day(hour)} on {'weekend' if is_weekend else 'weekday'}")

    return PredictiveInsight(
        current=current,
        predictions=predictions[: config.max_predictions],
        context_factors=context_factors,
    )
