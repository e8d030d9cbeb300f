"""
Tool: Temporal Pattern Analyzer
Purpose: Find when in the day and week each vibe shows up

All analysis is derived from the corrected label of each record, scored
with the fixed per-label energy lookup. Nothing here is persisted.

Outputs:
- MicroTemporalPattern: per-hour label preferences and mean energy
- WeeklyEnergyPattern: per-weekday peak/low hours and dominant labels
- EnergyWindow: contiguous peak/moderate/low hour runs
- TemporalInsight: chronotype, windows, specialized hours, weekend shift
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from enum import Enum
from statistics import fmean
from typing import Any

from vibecore.config_models import TemporalConfig
from vibecore.engine.labels import LABELS, Label, label_energy
from vibecore.engine.models import CorrectionRecord


class Chronotype(str, Enum):
    LARK = "lark"
    OWL = "owl"
    BALANCED = "balanced"


class EnergyType(str, Enum):
    PEAK = "peak"
    MODERATE = "moderate"
    LOW = "low"


CREATIVE_HOUR_LABELS = (Label.CURIOUS, Label.FLOWING)
SOCIAL_HOUR_LABELS = (Label.SOCIAL, Label.OPEN)
SOLO_HOUR_LABELS = (Label.SOLO, Label.CHILL)


def _labels_to_list(labels: list[Label]) -> list[str]:
    return [label.value for label in labels]


def _shares(labels: list[Label]) -> dict[Label, float]:
    """Relative frequency of each observed label, in enumeration order."""
    counts = Counter(labels)
    total = len(labels)
    return {label: counts[label] / total for label in LABELS if counts[label]}


@dataclass
class MicroTemporalPattern:
    """Label preferences observed within one hour of the day."""

    hour: int
    preferences: dict[Label, float]
    energy_level: float
    confidence: float
    sample_size: int
    optimal_for: list[Label] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hour": self.hour,
            "preferences": {k.value: round(v, 4) for k, v in self.preferences.items()},
            "energy_level": round(self.energy_level, 4),
            "confidence": round(self.confidence, 4),
            "sample_size": self.sample_size,
            "optimal_for": _labels_to_list(self.optimal_for),
        }


@dataclass
class WeeklyEnergyPattern:
    weekday: int  # Monday = 0
    average_energy: float
    peak_hours: list[int]
    low_hours: list[int]
    dominant_labels: list[Label]
    sample_size: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "weekday": self.weekday,
            "average_energy": round(self.average_energy, 4),
            "peak_hours": self.peak_hours,
            "low_hours": self.low_hours,
            "dominant_labels": _labels_to_list(self.dominant_labels),
            "sample_size": self.sample_size,
        }


@dataclass
class EnergyWindow:
    type: EnergyType
    start_hour: int
    end_hour: int
    average_energy: float
    recommended_labels: list[Label]
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "start_hour": self.start_hour,
            "end_hour": self.end_hour,
            "average_energy": round(self.average_energy, 4),
            "recommended_labels": _labels_to_list(self.recommended_labels),
            "confidence": round(self.confidence, 4),
        }


@dataclass
class WeekendDifference:
    """Weekend minus weekday; zero/empty when either side is too thin."""

    energy_shift: float = 0.0
    label_shifts: dict[Label, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "energy_shift": round(self.energy_shift, 4),
            "label_shifts": {k.value: round(v, 4) for k, v in self.label_shifts.items()},
        }


@dataclass
class TemporalInsight:
    chronotype: Chronotype = Chronotype.BALANCED
    energy_windows: list[EnergyWindow] = field(default_factory=list)
    creative_hours: list[int] = field(default_factory=list)
    social_hours: list[int] = field(default_factory=list)
    solo_hours: list[int] = field(default_factory=list)
    weekend_difference: WeekendDifference = field(default_factory=WeekendDifference)
    micro_patterns: list[MicroTemporalPattern] = field(default_factory=list)
    weekly_patterns: list[WeeklyEnergyPattern] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "chronotype": self.chronotype.value,
            "energy_windows": [w.to_dict() for w in self.energy_windows],
            "creative_hours": self.creative_hours,
            "social_hours": self.social_hours,
            "solo_hours": self.solo_hours,
            "weekend_difference": self.weekend_difference.to_dict(),
            "micro_patterns": [p.to_dict() for p in self.micro_patterns],
            "weekly_patterns": [p.to_dict() for p in self.weekly_patterns],
        }


# ─────────────────────────────────────────────────────────────────────────────
# Hourly and weekly passes
# ─────────────────────────────────────────────────────────────────────────────


def analyze_micro_patterns(
    records: list[CorrectionRecord], config: TemporalConfig | None = None
) -> list[MicroTemporalPattern]:
    """
    Bucket corrections by hour of day.

    Hours with fewer than min_samples_per_hour records are skipped.
    A label is "optimal for" the hour when its share exceeds
    optimal_multiplier times the uniform share across the labels seen
    in that hour.

    Returns:
        Patterns ordered by hour
    """
    config = config or TemporalConfig()

    by_hour: dict[int, list[Label]] = defaultdict(list)
    for record in records:
        by_hour[record.context.hour].append(record.corrected)

    patterns = []
    for hour in sorted(by_hour):
        labels = by_hour[hour]
        sample_size = len(labels)
        if sample_size < config.min_samples_per_hour:
            continue

        preferences = _shares(labels)
        threshold = config.optimal_multiplier / len(preferences)
        optimal_for = sorted(
            (label for label, share in preferences.items() if share > threshold),
            key=lambda label: -preferences[label],
        )
        patterns.append(
            MicroTemporalPattern(
                hour=hour,
                preferences=preferences,
                energy_level=fmean(label_energy(label) for label in labels),
                confidence=min(1.0, sample_size / config.confidence_saturation),
                sample_size=sample_size,
                optimal_for=optimal_for,
            )
        )

    return patterns


def analyze_weekly_patterns(
    records: list[CorrectionRecord], config: TemporalConfig | None = None
) -> list[WeeklyEnergyPattern]:
    """Per-weekday energy curve. Days without records are omitted."""
    config = config or TemporalConfig()

    hourly: dict[int, dict[int, list[float]]] = defaultdict(lambda: defaultdict(list))
    labels_by_day: dict[int, list[Label]] = defaultdict(list)
    for record in records:
        day = record.context.weekday
        hourly[day][record.context.hour].append(label_energy(record.corrected))
        labels_by_day[day].append(record.corrected)

    patterns = []
    for day in sorted(hourly):
        averages = {hour: fmean(values) for hour, values in hourly[day].items()}
        # Highest energy first; ties go to the earlier hour
        ranked = sorted(averages, key=lambda hour: (-averages[hour], hour))

        shares = _shares(labels_by_day[day])
        patterns.append(
            WeeklyEnergyPattern(
                weekday=day,
                average_energy=fmean(averages.values()),
                peak_hours=ranked[:3],
                low_hours=ranked[-3:],
                dominant_labels=[
                    label for label, share in shares.items() if share > config.dominant_frequency
                ],
                sample_size=len(labels_by_day[day]),
            )
        )

    return patterns


# ─────────────────────────────────────────────────────────────────────────────
# Derived classifications
# ─────────────────────────────────────────────────────────────────────────────


def determine_chronotype(
    patterns: list[MicroTemporalPattern], config: TemporalConfig | None = None
) -> Chronotype:
    config = config or TemporalConfig()
    if len(patterns) < config.min_hours_for_chronotype:
        return Chronotype.BALANCED

    peak = patterns[0]
    for pattern in patterns[1:]:
        if pattern.energy_level > peak.energy_level:
            peak = pattern

    if peak.hour <= config.lark_max_hour:
        return Chronotype.LARK
    if peak.hour >= config.owl_min_hour:
        return Chronotype.OWL
    return Chronotype.BALANCED


def _classify_energy(energy: float, high: float, low: float) -> EnergyType:
    if energy > high:
        return EnergyType.PEAK
    if energy < low:
        return EnergyType.LOW
    return EnergyType.MODERATE


def _build_window(energy_type: EnergyType, run: list[MicroTemporalPattern]) -> EnergyWindow:
    mentions = Counter(label for pattern in run for label in pattern.optimal_for)
    recommended = [
        label
        for label, count in sorted(mentions.items(), key=lambda kv: (-kv[1], LABELS.index(kv[0])))
        if count >= 2
    ][:3]

    hours = [pattern.hour for pattern in run]
    return EnergyWindow(
        type=energy_type,
        start_hour=min(hours),
        end_hour=max(hours),
        average_energy=fmean(pattern.energy_level for pattern in run),
        recommended_labels=recommended,
        confidence=min(1.0, len(hours) / 4),
    )


def identify_energy_windows(
    patterns: list[MicroTemporalPattern], config: TemporalConfig | None = None
) -> list[EnergyWindow]:
    """
    Merge consecutive same-class hours into windows.

    Hours are classified against mean energy +/- energy_band. Runs are
    formed over the populated hours in order, so a gap of empty hours does
    not split a run. Runs shorter than min_window_hours are dropped.
    """
    config = config or TemporalConfig()
    if len(patterns) < config.min_hours_for_windows:
        return []

    ordered = sorted(patterns, key=lambda p: p.hour)
    mean_energy = fmean(p.energy_level for p in ordered)
    high = mean_energy + config.energy_band
    low = mean_energy - config.energy_band

    windows: list[EnergyWindow] = []
    run: list[MicroTemporalPattern] = []
    run_type: EnergyType | None = None

    for pattern in ordered:
        energy_type = _classify_energy(pattern.energy_level, high, low)
        if energy_type is run_type:
            run.append(pattern)
            continue
        if run_type is not None and len(run) >= config.min_window_hours:
            windows.append(_build_window(run_type, run))
        run_type = energy_type
        run = [pattern]

    if run_type is not None and len(run) >= config.min_window_hours:
        windows.append(_build_window(run_type, run))

    return windows


def find_specialized_hours(
    patterns: list[MicroTemporalPattern],
    labels: tuple[Label, ...],
    config: TemporalConfig | None = None,
) -> list[int]:
    """First three confident hours whose optimal-for set hits any of labels."""
    config = config or TemporalConfig()
    hours = [
        p.hour
        for p in patterns
        if any(label in p.optimal_for for label in labels)
        and p.confidence > config.specialized_hour_confidence
    ]
    return hours[:3]


def analyze_weekend_difference(
    records: list[CorrectionRecord], config: TemporalConfig | None = None
) -> WeekendDifference:
    config = config or TemporalConfig()

    weekday = [r.corrected for r in records if not r.context.is_weekend]
    weekend = [r.corrected for r in records if r.context.is_weekend]
    if len(weekday) < config.min_weekday_samples or len(weekend) < config.min_weekend_samples:
        return WeekendDifference()

    energy_shift = fmean(map(label_energy, weekend)) - fmean(map(label_energy, weekday))

    weekday_shares = _shares(weekday)
    weekend_shares = _shares(weekend)
    label_shifts = {
        label: weekend_shares.get(label, 0.0) - weekday_shares.get(label, 0.0)
        for label in LABELS
        if label in weekday_shares or label in weekend_shares
    }
    return WeekendDifference(energy_shift=energy_shift, label_shifts=label_shifts)


def generate_temporal_insights(
    records: list[CorrectionRecord], config: TemporalConfig | None = None
) -> TemporalInsight:
    """Run every temporal pass over one snapshot of the log."""
    config = config or TemporalConfig()

    micro = analyze_micro_patterns(records, config)
    return TemporalInsight(
        chronotype=determine_chronotype(micro, config),
        energy_windows=identify_energy_windows(micro, config),
        creative_hours=find_specialized_hours(micro, CREATIVE_HOUR_LABELS, config),
        social_hours=find_specialized_hours(micro, SOCIAL_HOUR_LABELS, config),
        solo_hours=find_specialized_hours(micro, SOLO_HOUR_LABELS, config),
        weekend_difference=analyze_weekend_difference(records, config),
        micro_patterns=micro,
        weekly_patterns=analyze_weekly_patterns(records, config),
    )
