"""Weight tables: the immutable base layer and the per-user delta layer.

EffectiveWeights = BASE_WEIGHTS + PersonalDelta, elementwise, computed at
read time. Only the delta is ever persisted.
"""

from __future__ import annotations

import copy
import json
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from vibecore.engine.labels import CATEGORIES, LABELS, FeatureCategory, Label
from vibecore.engine.models import to_local_naive


WeightTable = dict[FeatureCategory, dict[Label, float]]

DELTA_SCHEMA_VERSION = 1


def zero_table() -> WeightTable:
    return {category: {label: 0.0 for label in LABELS} for category in CATEGORIES}


def merge_weights(base: WeightTable, delta: WeightTable) -> WeightTable:
    """Elementwise base + delta over the full category x label grid."""
    return {
        category: {
            label: base[category][label] + delta.get(category, {}).get(label, 0.0)
            for label in LABELS
        }
        for category in CATEGORIES
    }


def table_to_dict(table: WeightTable) -> dict[str, dict[str, float]]:
    return {
        category.value: {label.value: table[category][label] for label in LABELS}
        for category in CATEGORIES
    }


def table_from_dict(data: Mapping[str, Any]) -> WeightTable:
    """Parse a serialized table, raising ValueError on anything malformed."""
    if not isinstance(data, Mapping):
        raise ValueError("weight table must be a mapping")

    table = zero_table()
    for raw_category, row in data.items():
        try:
            category = FeatureCategory(raw_category)
        except ValueError:
            raise ValueError(f"Unknown feature category: {raw_category}") from None
        if not isinstance(row, Mapping):
            raise ValueError(f"weights for {raw_category} must be a mapping")
        for raw_label, value in row.items():
            label = Label.parse(raw_label)
            number = float(value)
            if not math.isfinite(number):
                raise ValueError(f"non-finite weight for {raw_category}/{raw_label}")
            table[category][label] = number
    return table


@dataclass
class PersonalDelta:
    """Learned per-user adjustment layered over BASE_WEIGHTS."""

    weights: WeightTable = field(default_factory=zero_table)
    last_batch_at: datetime | None = None
    batch_count: int = 0
    updated_at: datetime | None = None

    def get(self, category: FeatureCategory, label: Label) -> float:
        return self.weights[category][label]

    def add(self, category: FeatureCategory, label: Label, amount: float, clamp: float) -> float:
        """Add to one cell, clamp to [-clamp, clamp], and return the new value."""
        value = self.weights[category][label] + amount
        value = max(-clamp, min(clamp, value))
        self.weights[category][label] = value
        return value

    def scale(self, factor: float, snap_epsilon: float = 0.0) -> None:
        for category in CATEGORIES:
            row = self.weights[category]
            for label in LABELS:
                value = row[label] * factor
                row[label] = 0.0 if abs(value) < snap_epsilon else value

    def max_abs(self) -> float:
        return max(abs(v) for row in self.weights.values() for v in row.values())

    def is_zero(self) -> bool:
        return self.max_abs() == 0.0

    def signature(self) -> str:
        """Serialized form of the weight grid, used as the fusion cache key."""
        return json.dumps(table_to_dict(self.weights), sort_keys=True)

    def copy(self) -> PersonalDelta:
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": DELTA_SCHEMA_VERSION,
            "weights": table_to_dict(self.weights),
            "last_batch_at": self.last_batch_at.isoformat() if self.last_batch_at else None,
            "batch_count": self.batch_count,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PersonalDelta:
        if not isinstance(data, Mapping):
            raise ValueError("delta document must be a mapping")
        if data.get("version") != DELTA_SCHEMA_VERSION:
            raise ValueError(f"Unsupported delta schema version: {data.get('version')}")

        last_batch_at = data.get("last_batch_at")
        updated_at = data.get("updated_at")
        return cls(
            weights=table_from_dict(data.get("weights") or {}),
            last_batch_at=to_local_naive(datetime.fromisoformat(last_batch_at)) if last_batch_at else None,
            batch_count=int(data.get("batch_count", 0)),
            updated_at=to_local_naive(datetime.fromisoformat(updated_at)) if updated_at else None,
        )
