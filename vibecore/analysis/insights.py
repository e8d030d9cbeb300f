"""
Tool: Insight Aggregator
Purpose: Roll every analyzer up into one PersonalityInsight

Gated on sample count: below insights.min_samples the insight carries
has_enough_data=False, neutral classifications and empty structures.
Partially computed results are never returned.

Classifications:
- chronotype:  lark / owl / balanced (from the temporal pass)
- energy_type: high-energy / low-energy / balanced (mean corrected energy)
- social_type: social / solo / balanced (social vs solo label share)
- consistency: very-consistent / consistent / adaptive / highly-adaptive
               (mean dominant-label share across populated hours)
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from statistics import fmean
from typing import Any

from vibecore.analysis.sequences import detect_sequences, detect_triggers
from vibecore.analysis.temporal import Chronotype, generate_temporal_insights
from vibecore.analysis.venues import analyze_venue_impact, detect_venue_sequences
from vibecore.config_models import VibeConfig
from vibecore.engine.labels import SOCIAL_LABELS, SOLO_LABELS, Label, label_energy
from vibecore.engine.models import CorrectionRecord


class EnergyProfile(str, Enum):
    HIGH = "high-energy"
    LOW = "low-energy"
    BALANCED = "balanced"


class SocialProfile(str, Enum):
    SOCIAL = "social"
    SOLO = "solo"
    BALANCED = "balanced"


class Consistency(str, Enum):
    VERY_CONSISTENT = "very-consistent"
    CONSISTENT = "consistent"
    ADAPTIVE = "adaptive"
    HIGHLY_ADAPTIVE = "highly-adaptive"
    UNKNOWN = "unknown"


@dataclass
class Recommendation:
    id: str
    type: str  # temporal / venue / sequence / energy
    title: str
    description: str
    confidence: float
    actionable: bool = True
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "confidence": self.confidence,
            "actionable": self.actionable,
            "context": self.context,
        }


@dataclass
class PersonalityInsight:
    """Composite read model over one snapshot of the correction log."""

    has_enough_data: bool = False
    sample_size: int = 0
    chronotype: Chronotype = Chronotype.BALANCED
    energy_type: EnergyProfile = EnergyProfile.BALANCED
    social_type: SocialProfile = SocialProfile.BALANCED
    consistency: Consistency = Consistency.UNKNOWN
    hourly_preferences: dict[int, dict[Label, float]] = field(default_factory=dict)
    temporal: dict[str, Any] = field(default_factory=dict)
    venue_impacts: list[dict[str, Any]] = field(default_factory=list)
    venue_sequences: list[dict[str, Any]] = field(default_factory=list)
    sequences: list[dict[str, Any]] = field(default_factory=list)
    triggers: list[dict[str, Any]] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_enough_data": self.has_enough_data,
            "sample_size": self.sample_size,
            "chronotype": self.chronotype.value,
            "energy_type": self.energy_type.value,
            "social_type": self.social_type.value,
            "consistency": self.consistency.value,
            "hourly_preferences": {
                str(hour): {label.value: round(share, 4) for label, share in prefs.items()}
                for hour, prefs in self.hourly_preferences.items()
            },
            "temporal": self.temporal,
            "venue_impacts": self.venue_impacts,
            "venue_sequences": self.venue_sequences,
            "sequences": self.sequences,
            "triggers": self.triggers,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "generated_at": self.generated_at.isoformat(),
        }


def classify_energy(records: list[CorrectionRecord]) -> EnergyProfile:
    if not records:
        return EnergyProfile.BALANCED
    mean_energy = fmean(label_energy(r.corrected) for r in records)
    if mean_energy >= 0.6:
        return EnergyProfile.HIGH
    if mean_energy <= 0.4:
        return EnergyProfile.LOW
    return EnergyProfile.BALANCED


def classify_social(records: list[CorrectionRecord], margin: float = 0.15) -> SocialProfile:
    if not records:
        return SocialProfile.BALANCED
    total = len(records)
    social = sum(1 for r in records if r.corrected in SOCIAL_LABELS) / total
    solo = sum(1 for r in records if r.corrected in SOLO_LABELS) / total
    if social - solo > margin:
        return SocialProfile.SOCIAL
    if solo - social > margin:
        return SocialProfile.SOLO
    return SocialProfile.BALANCED


def classify_consistency(records: list[CorrectionRecord], min_per_hour: int = 2) -> Consistency:
    """How reliably the same label shows up at the same hour."""
    by_hour: dict[int, list[Label]] = defaultdict(list)
    for record in records:
        by_hour[record.context.hour].append(record.corrected)

    shares = [
        Counter(labels).most_common(1)[0][1] / len(labels)
        for labels in by_hour.values()
        if len(labels) >= min_per_hour
    ]
    if not shares:
        return Consistency.UNKNOWN

    score = fmean(shares)
    if score >= 0.75:
        return Consistency.VERY_CONSISTENT
    if score >= 0.55:
        return Consistency.CONSISTENT
    if score >= 0.35:
        return Consistency.ADAPTIVE
    return Consistency.HIGHLY_ADAPTIVE


def build_recommendations(insight: PersonalityInsight) -> list[Recommendation]:
    """Turn the headline classifications into user-facing suggestions."""
    if not insight.has_enough_data:
        return []

    recommendations = []

    if insight.chronotype is Chronotype.LARK:
        recommendations.append(
            Recommendation(
                id="chronotype-morning",
                type="temporal",
                title="Morning Energy Peak",
                description="You tend to be most energetic between 6-11am",
                confidence=0.8,
                context={"time_range": "morning", "activity": "important tasks"},
            )
        )
    elif insight.chronotype is Chronotype.OWL:
        recommendations.append(
            Recommendation(
                id="chronotype-evening",
                type="temporal",
                title="Evening Energy Peak",
                description="You tend to be most energetic between 5-10pm",
                confidence=0.8,
                context={"time_range": "evening", "activity": "creative work"},
            )
        )

    if insight.energy_type is EnergyProfile.HIGH:
        recommendations.append(
            Recommendation(
                id="energy-venues",
                type="venue",
                title="High-Energy Venues",
                description="You prefer active, bustling environments",
                confidence=0.7,
                context={"venue_types": ["gym", "busy cafe", "social space"]},
            )
        )
    elif insight.energy_type is EnergyProfile.LOW:
        recommendations.append(
            Recommendation(
                id="calm-venues",
                type="venue",
                title="Calm Environments",
                description="You prefer quiet, peaceful settings",
                confidence=0.7,
                context={"venue_types": ["library", "park", "quiet cafe"]},
            )
        )

    if insight.social_type is SocialProfile.SOCIAL:
        recommendations.append(
            Recommendation(
                id="social-timing",
                type="sequence",
                title="Social Energy Patterns",
                description="You gain energy from social interactions",
                confidence=0.75,
                context={"activity": "social planning"},
            )
        )
    elif insight.social_type is SocialProfile.SOLO:
        recommendations.append(
            Recommendation(
                id="solo-recharge",
                type="sequence",
                title="Solo Recharge Time",
                description="You recharge best in solitude",
                confidence=0.75,
                context={"activity": "alone time scheduling"},
            )
        )

    if insight.consistency is Consistency.VERY_CONSISTENT:
        recommendations.append(
            Recommendation(
                id="routine-optimization",
                type="energy",
                title="Routine Optimization",
                description="Your patterns are very predictable",
                confidence=0.9,
                context={"approach": "maintain routines"},
            )
        )
    elif insight.consistency is Consistency.HIGHLY_ADAPTIVE:
        recommendations.append(
            Recommendation(
                id="variety-seeking",
                type="energy",
                title="Variety & Flexibility",
                description="You thrive on changing environments",
                confidence=0.85,
                context={"approach": "seek variety"},
            )
        )

    return recommendations


def aggregate_insights(
    records: list[CorrectionRecord], config: VibeConfig | None = None
) -> PersonalityInsight:
    """
    Build a PersonalityInsight from a snapshot of the correction log.

    Args:
        records: Correction log copy; never mutated
        config: Full config; analyzer sections are passed through

    Returns:
        PersonalityInsight, with has_enough_data=False below the threshold
    """
    config = config or VibeConfig()

    if len(records) < config.insights.min_samples:
        return PersonalityInsight(has_enough_data=False, sample_size=len(records))

    temporal = generate_temporal_insights(records, config.temporal)

    insight = PersonalityInsight(
        has_enough_data=True,
        sample_size=len(records),
        chronotype=temporal.chronotype,
        energy_type=classify_energy(records),
        social_type=classify_social(records),
        consistency=classify_consistency(records, config.temporal.min_samples_per_hour),
        hourly_preferences={p.hour: dict(p.preferences) for p in temporal.micro_patterns},
        temporal=temporal.to_dict(),
        venue_impacts=[v.to_dict() for v in analyze_venue_impact(records, config.venues)],
        venue_sequences=[v.to_dict() for v in detect_venue_sequences(records, config.venues)],
        sequences=[s.to_dict() for s in detect_sequences(records, config.sequences)],
        triggers=[t.to_dict() for t in detect_triggers(records, config.sequences)],
    )
    insight.recommendations = build_recommendations(insight)
    return insight
