"""Closed vibe and feature-category enumerations.

Both sets are fixed at import time. Every table keyed by them
(base weights, label energy) is checked for exhaustiveness when this
module loads, so a missing entry fails fast instead of silently
reading as zero during inference.
"""

from __future__ import annotations

from enum import Enum


class Label(str, Enum):
    """Mood/state labels the engine predicts."""

    HYPE = "hype"
    ENERGETIC = "energetic"
    SOCIAL = "social"
    OPEN = "open"
    FLOWING = "flowing"
    CURIOUS = "curious"
    WEIRD = "weird"
    ROMANTIC = "romantic"
    FOCUSED = "focused"
    CHILL = "chill"
    SOLO = "solo"
    DOWN = "down"

    @classmethod
    def parse(cls, value: Label | str) -> Label:
        """Coerce a label or its string value, raising ValueError if unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Invalid vibe label: {value}") from None


class FeatureCategory(str, Enum):
    """Scalar input channels produced by the feature providers."""

    CIRCADIAN = "circadian"
    MOVEMENT = "movement"
    VENUE_ENERGY = "venue_energy"
    DEVICE_USAGE = "device_usage"
    WEATHER = "weather"


LABELS: tuple[Label, ...] = tuple(Label)
CATEGORIES: tuple[FeatureCategory, ...] = tuple(FeatureCategory)

# Energy level of each label on a 0-1 scale
LABEL_ENERGY: dict[Label, float] = {
    Label.HYPE: 0.95,
    Label.ENERGETIC: 0.9,
    Label.SOCIAL: 0.75,
    Label.FLOWING: 0.7,
    Label.OPEN: 0.6,
    Label.CURIOUS: 0.6,
    Label.WEIRD: 0.55,
    Label.FOCUSED: 0.5,
    Label.ROMANTIC: 0.45,
    Label.CHILL: 0.3,
    Label.SOLO: 0.25,
    Label.DOWN: 0.1,
}

# Groupings used by social personality classification
SOCIAL_LABELS: frozenset[Label] = frozenset({Label.SOCIAL, Label.OPEN, Label.ROMANTIC, Label.HYPE})
SOLO_LABELS: frozenset[Label] = frozenset({Label.SOLO, Label.CHILL, Label.FOCUSED, Label.DOWN})

# Base weight table: category -> label -> signed weight
BASE_WEIGHTS: dict[FeatureCategory, dict[Label, float]] = {
    FeatureCategory.CIRCADIAN: {
        Label.HYPE: 0.4,
        Label.ENERGETIC: 0.7,
        Label.SOCIAL: 0.3,
        Label.OPEN: 0.3,
        Label.FLOWING: 0.5,
        Label.CURIOUS: 0.4,
        Label.WEIRD: 0.1,
        Label.ROMANTIC: -0.1,
        Label.FOCUSED: 0.6,
        Label.CHILL: -0.3,
        Label.SOLO: -0.1,
        Label.DOWN: -0.5,
    },
    FeatureCategory.MOVEMENT: {
        Label.HYPE: 0.6,
        Label.ENERGETIC: 0.8,
        Label.SOCIAL: 0.2,
        Label.OPEN: 0.3,
        Label.FLOWING: 0.6,
        Label.CURIOUS: 0.3,
        Label.WEIRD: 0.2,
        Label.ROMANTIC: 0.0,
        Label.FOCUSED: -0.4,
        Label.CHILL: -0.5,
        Label.SOLO: -0.2,
        Label.DOWN: -0.6,
    },
    FeatureCategory.VENUE_ENERGY: {
        Label.HYPE: 0.8,
        Label.ENERGETIC: 0.4,
        Label.SOCIAL: 0.7,
        Label.OPEN: 0.4,
        Label.FLOWING: 0.2,
        Label.CURIOUS: 0.3,
        Label.WEIRD: 0.4,
        Label.ROMANTIC: 0.3,
        Label.FOCUSED: -0.3,
        Label.CHILL: -0.2,
        Label.SOLO: -0.6,
        Label.DOWN: -0.4,
    },
    FeatureCategory.DEVICE_USAGE: {
        Label.HYPE: -0.2,
        Label.ENERGETIC: -0.1,
        Label.SOCIAL: -0.3,
        Label.OPEN: -0.2,
        Label.FLOWING: 0.1,
        Label.CURIOUS: 0.4,
        Label.WEIRD: 0.2,
        Label.ROMANTIC: -0.3,
        Label.FOCUSED: 0.7,
        Label.CHILL: 0.2,
        Label.SOLO: 0.6,
        Label.DOWN: 0.3,
    },
    FeatureCategory.WEATHER: {
        Label.HYPE: 0.3,
        Label.ENERGETIC: 0.4,
        Label.SOCIAL: 0.4,
        Label.OPEN: 0.6,
        Label.FLOWING: 0.5,
        Label.CURIOUS: 0.3,
        Label.WEIRD: 0.0,
        Label.ROMANTIC: 0.3,
        Label.FOCUSED: 0.0,
        Label.CHILL: 0.4,
        Label.SOLO: -0.1,
        Label.DOWN: -0.6,
    },
}


def _check_exhaustive() -> None:
    missing_energy = set(LABELS) - set(LABEL_ENERGY)
    if missing_energy:
        raise RuntimeError(f"LABEL_ENERGY missing labels: {sorted(m.value for m in missing_energy)}")

    missing_categories = set(CATEGORIES) - set(BASE_WEIGHTS)
    if missing_categories:
        raise RuntimeError(
            f"BASE_WEIGHTS missing categories: {sorted(m.value for m in missing_categories)}"
        )

    for category, row in BASE_WEIGHTS.items():
        missing = set(LABELS) - set(row)
        if missing:
            raise RuntimeError(
                f"BASE_WEIGHTS[{category.value}] missing labels: {sorted(m.value for m in missing)}"
            )


_check_exhaustive()


def label_energy(label: Label | str) -> float:
    """Energy level of a label (0.5 for anything unrecognized)."""
    try:
        return LABEL_ENERGY[Label.parse(label)]
    except ValueError:
        return 0.5
