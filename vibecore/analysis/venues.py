"""
Tool: Venue Pattern Analyzer
Purpose: Learn how places shift the user's vibe

- analyze_venue_impact: per-venue energy shift and label preferences
- detect_venue_sequences: what vibe follows moving from one venue to another
- get_optimal_venues: rank known venues for a target vibe
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from statistics import fmean
from typing import Any

from vibecore.config_models import VenuesConfig
from vibecore.engine.labels import LABELS, Label, label_energy
from vibecore.engine.models import CorrectionRecord


@dataclass
class VenueImpact:
    venue: str
    energy_delta: float  # -1..1, corrected minus predicted label energy
    preferences: dict[Label, float]
    optimal_dwell_minutes: float
    confidence: float
    sample_size: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "venue": self.venue,
            "energy_delta": round(self.energy_delta, 4),
            "preferences": {k.value: round(v, 4) for k, v in self.preferences.items()},
            "optimal_dwell_minutes": round(self.optimal_dwell_minutes, 1),
            "confidence": round(self.confidence, 4),
            "sample_size": self.sample_size,
        }


@dataclass
class VenueSequence:
    from_venue: str
    to_venue: str
    resulting_label: Label
    probability: float
    avg_minutes_between: float
    confidence: float
    sample_size: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "from_venue": self.from_venue,
            "to_venue": self.to_venue,
            "resulting_label": self.resulting_label.value,
            "probability": round(self.probability, 4),
            "avg_minutes_between": round(self.avg_minutes_between, 1),
            "confidence": round(self.confidence, 4),
            "sample_size": self.sample_size,
        }


@dataclass
class VenueRecommendation:
    venue: str
    reason: str
    score: float
    confidence: float
    expected_impact: str  # energizing / calming / neutral

    def to_dict(self) -> dict[str, Any]:
        return {
            "venue": self.venue,
            "reason": self.reason,
            "score": round(self.score, 4),
            "confidence": round(self.confidence, 4),
            "expected_impact": self.expected_impact,
        }


def estimate_dwell(records: list[CorrectionRecord], default: float = 45.0) -> float:
    """Mean reported dwell time, or default when none was reported."""
    dwells = [r.context.dwell_minutes for r in records if r.context.dwell_minutes is not None]
    return fmean(dwells) if dwells else default


def analyze_venue_impact(
    records: list[CorrectionRecord], config: VenuesConfig | None = None
) -> list[VenueImpact]:
    """Impact per venue, keeping only venues with confidence above min_confidence."""
    config = config or VenuesConfig()

    by_venue: dict[str, list[CorrectionRecord]] = defaultdict(list)
    for record in records:
        if record.venue:
            by_venue[record.venue].append(record)

    impacts = []
    for venue in sorted(by_venue):
        group = by_venue[venue]
        sample_size = len(group)
        confidence = min(1.0, sample_size / config.confidence_saturation)
        if confidence <= config.min_confidence:
            continue

        delta = fmean(label_energy(r.corrected) - label_energy(r.predicted_label) for r in group)
        counts = Counter(r.corrected for r in group)
        impacts.append(
            VenueImpact(
                venue=venue,
                energy_delta=max(-1.0, min(1.0, delta)),
                preferences={label: counts[label] / sample_size for label in LABELS if counts[label]},
                optimal_dwell_minutes=estimate_dwell(group, config.default_dwell_minutes),
                confidence=confidence,
                sample_size=sample_size,
            )
        )

    return impacts


def detect_venue_sequences(
    records: list[CorrectionRecord], config: VenuesConfig | None = None
) -> list[VenueSequence]:
    """Outcomes of consecutive corrections at two different venues."""
    config = config or VenuesConfig()

    ordered = sorted(records, key=lambda r: r.timestamp)
    max_gap_minutes = config.max_gap_hours * 60

    outcomes: dict[tuple[str, str], list[Label]] = defaultdict(list)
    gaps: dict[tuple[str, str], list[float]] = defaultdict(list)

    for prev, curr in zip(ordered, ordered[1:]):
        if not prev.venue or not curr.venue or prev.venue == curr.venue:
            continue
        minutes = (curr.timestamp - prev.timestamp).total_seconds() / 60
        if minutes > max_gap_minutes:
            continue
        outcomes[(prev.venue, curr.venue)].append(curr.corrected)
        gaps[(prev.venue, curr.venue)].append(minutes)

    sequences = []
    for (from_venue, to_venue), labels in sorted(outcomes.items()):
        sample_size = len(labels)
        if sample_size < config.transition_min_samples:
            continue

        counts = Counter(labels)
        # Most frequent outcome; ties resolve in enumeration order
        label = max(LABELS, key=lambda lab: counts[lab])
        sequences.append(
            VenueSequence(
                from_venue=from_venue,
                to_venue=to_venue,
                resulting_label=label,
                probability=counts[label] / sample_size,
                avg_minutes_between=fmean(gaps[(from_venue, to_venue)]),
                confidence=min(1.0, sample_size / config.transition_confidence_saturation),
                sample_size=sample_size,
            )
        )

    return sequences


def energy_alignment(target: Label, venue_energy_delta: float) -> float:
    """1 when the venue's expected energy matches the target label, 0 when far off."""
    distance = abs(label_energy(target) - (0.5 + venue_energy_delta))
    return max(0.0, 1.0 - distance * 2)


def _expected_impact(energy_delta: float) -> str:
    if energy_delta > 0.1:
        return "energizing"
    if energy_delta < -0.1:
        return "calming"
    return "neutral"


def _recommendation_reason(impact: VenueImpact, target: Label) -> str:
    preference = round(impact.preferences.get(target, 0.0) * 100)
    if impact.energy_delta > 0.2:
        kind = "Energizing"
    elif impact.energy_delta < -0.2:
        kind = "Calming"
    else:
        kind = "Neutral"
    return f'{kind} venue - you choose "{target.value}" here {preference}% of the time'


def get_optimal_venues(
    impacts: list[VenueImpact], target: Label, config: VenuesConfig | None = None
) -> list[VenueRecommendation]:
    """
    Rank venues for reaching a target vibe.

    score = 0.6 * preference for target + 0.4 * energy alignment.
    Venues below recommendation_min_score are dropped; the rest are
    ordered by score * venue confidence and the top 3 returned.
    """
    config = config or VenuesConfig()

    recommendations = []
    for impact in impacts:
        if impact.confidence <= config.recommendation_min_confidence:
            continue
        score = 0.6 * impact.preferences.get(target, 0.0) + 0.4 * energy_alignment(
            target, impact.energy_delta
        )
        if score < config.recommendation_min_score:
            continue
        recommendations.append(
            VenueRecommendation(
                venue=impact.venue,
                reason=_recommendation_reason(impact, target),
                score=score,
                confidence=score * impact.confidence,
                expected_impact=_expected_impact(impact.energy_delta),
            )
        )

    recommendations.sort(key=lambda r: r.confidence, reverse=True)
    return recommendations[:3]
