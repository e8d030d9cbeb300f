"""Engine data models.

Defines the value types that flow through inference and learning:
    FeatureVector -> VibeVector -> VibeReading
    (VibeReading + user choice) -> CorrectionRecord
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from vibecore.engine.labels import CATEGORIES, LABELS, FeatureCategory, Label


VibeVector = dict[Label, float]

# Accepted spellings for each feature key, beyond the enum value itself
_FEATURE_ALIASES: dict[str, FeatureCategory] = {
    "venue-energy": FeatureCategory.VENUE_ENERGY,
    "venueenergy": FeatureCategory.VENUE_ENERGY,
    "device-usage": FeatureCategory.DEVICE_USAGE,
    "deviceusage": FeatureCategory.DEVICE_USAGE,
}


def _coerce_scalar(value: Any) -> float:
    """Missing, non-numeric or NaN inputs count as 0; everything else is clamped to [0, 1]."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return max(0.0, min(1.0, number))


def _resolve_category(key: Any) -> FeatureCategory | None:
    if isinstance(key, FeatureCategory):
        return key
    text = str(key).strip()
    try:
        return FeatureCategory(text.lower())
    except ValueError:
        return _FEATURE_ALIASES.get(text.lower())


@dataclass(frozen=True)
class FeatureVector:
    """Five per-category scalars in [0, 1] for one inference tick."""

    circadian: float = 0.0
    movement: float = 0.0
    venue_energy: float = 0.0
    device_usage: float = 0.0
    weather: float = 0.0

    def __post_init__(self) -> None:
        for category in CATEGORIES:
            object.__setattr__(self, category.value, _coerce_scalar(getattr(self, category.value)))

    @classmethod
    def from_mapping(cls, data: Mapping[Any, Any] | None) -> FeatureVector:
        """Build from a loosely keyed mapping; unknown keys are ignored."""
        values: dict[str, float] = {}
        for key, value in (data or {}).items():
            category = _resolve_category(key)
            if category is not None:
                values[category.value] = _coerce_scalar(value)
        return cls(**values)

    def get(self, category: FeatureCategory) -> float:
        return getattr(self, category.value)

    def items(self) -> list[tuple[FeatureCategory, float]]:
        return [(category, self.get(category)) for category in CATEGORIES]

    def values(self) -> list[float]:
        return [self.get(category) for category in CATEGORIES]

    def total(self) -> float:
        return sum(self.values())

    def to_dict(self) -> dict[str, float]:
        return {category.value: self.get(category) for category in CATEGORIES}


def to_local_naive(ts: datetime) -> datetime:
    """Express ts as naive local time. Aware values are converted first."""
    if ts.tzinfo is None:
        return ts
    return ts.astimezone().replace(tzinfo=None)


def vector_to_dict(vector: Mapping[Label, float]) -> dict[str, float]:
    return {label.value: float(vector.get(label, 0.0)) for label in LABELS}


def vector_from_dict(data: Mapping[str, Any]) -> VibeVector:
    """Parse a stored VibeVector. Unknown labels are dropped, missing ones read as 0."""
    vector: VibeVector = {label: 0.0 for label in LABELS}
    for key, value in data.items():
        try:
            label = Label.parse(key)
        except ValueError:
            continue
        vector[label] = float(value)
    return vector


def top_label(vector: Mapping[Label, float]) -> Label:
    """Most likely label; ties resolve in enumeration order."""
    return max(LABELS, key=lambda label: vector.get(label, 0.0))


@dataclass(frozen=True)
class VibeReading:
    """Result of one inference call."""

    label: Label
    confidence: float
    vector: VibeVector
    features: FeatureVector
    latency_ms: float
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label.value,
            "confidence": round(self.confidence, 4),
            "vector": {k: round(v, 4) for k, v in vector_to_dict(self.vector).items()},
            "features": self.features.to_dict(),
            "latency_ms": round(self.latency_ms, 3),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class CorrectionContext:
    """Where and when a correction happened."""

    hour: int
    weekday: int  # Monday = 0
    venue: str | None = None
    dwell_minutes: float | None = None

    def __post_init__(self) -> None:
        if not 0 <= int(self.hour) <= 23:
            raise ValueError(f"Invalid hour: {self.hour}")
        if not 0 <= int(self.weekday) <= 6:
            raise ValueError(f"Invalid weekday: {self.weekday}")
        object.__setattr__(self, "hour", int(self.hour))
        object.__setattr__(self, "weekday", int(self.weekday))
        if self.venue is not None:
            venue = str(self.venue).strip()
            object.__setattr__(self, "venue", venue or None)

    @classmethod
    def from_timestamp(
        cls, ts: datetime, venue: str | None = None, dwell_minutes: float | None = None
    ) -> CorrectionContext:
        return cls(hour=ts.hour, weekday=ts.weekday(), venue=venue, dwell_minutes=dwell_minutes)

    @property
    def is_weekend(self) -> bool:
        return self.weekday >= 5

    def to_dict(self) -> dict[str, Any]:
        return {
            "hour": self.hour,
            "weekday": self.weekday,
            "venue": self.venue,
            "dwell_minutes": self.dwell_minutes,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CorrectionContext:
        dwell = data.get("dwell_minutes")
        return cls(
            hour=int(data["hour"]),
            weekday=int(data["weekday"]),
            venue=data.get("venue"),
            dwell_minutes=float(dwell) if dwell is not None else None,
        )


@dataclass(frozen=True)
class CorrectionRecord:
    """A user override of a predicted label - the primary training signal."""

    timestamp: datetime
    predicted_label: Label
    predicted_vector: VibeVector
    corrected: Label
    features: FeatureVector
    context: CorrectionContext

    def __post_init__(self) -> None:
        # Every logged timestamp is naive local time
        object.__setattr__(self, "timestamp", to_local_naive(self.timestamp))

    def predicted_probability(self, label: Label) -> float:
        return self.predicted_vector.get(label, 0.0)

    @property
    def venue(self) -> str | None:
        return self.context.venue

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "predicted_label": self.predicted_label.value,
            "predicted_vector": vector_to_dict(self.predicted_vector),
            "corrected": self.corrected.value,
            "features": self.features.to_dict(),
            "context": self.context.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CorrectionRecord:
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            predicted_label=Label.parse(data["predicted_label"]),
            predicted_vector=vector_from_dict(data.get("predicted_vector") or {}),
            corrected=Label.parse(data["corrected"]),
            features=FeatureVector.from_mapping(data.get("features")),
            context=CorrectionContext.from_dict(data["context"]),
        )
