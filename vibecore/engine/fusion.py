"""
Signal Fusion Engine

Combines the five feature scalars into a probability distribution over
vibe labels:

    raw[label]      = sum(scalar[c] * effective[c][label] for c in categories)
    squashed[label] = 1 / (1 + e^(-sharpness * raw[label]))
    vector          = squashed / sum(squashed)

Effective weights (base + personal delta) are cached on the engine
instance and rebuilt only when the delta signature changes.
"""

from __future__ import annotations

import math
import time
from collections.abc import Mapping
from typing import Any

from vibecore.config_models import ConfidenceConfig, FusionConfig
from vibecore.engine.confidence import estimate_confidence
from vibecore.engine.labels import BASE_WEIGHTS, CATEGORIES, LABELS, Label
from vibecore.engine.models import FeatureVector, VibeReading, VibeVector, top_label
from vibecore.engine.weights import PersonalDelta, WeightTable, merge_weights


def logistic(x: float, sharpness: float = 2.0) -> float:
    z = sharpness * x
    # math.exp overflows past ~709
    if z < -700:
        return 0.0
    return 1.0 / (1.0 + math.exp(-z))


def renormalize(vector: Mapping[Label, float]) -> VibeVector:
    """Scale to sum 1. An all-zero vector is divided by 1 and stays zero."""
    cleaned = {label: max(0.0, float(vector.get(label, 0.0))) for label in LABELS}
    total = sum(cleaned.values()) or 1.0
    return {label: value / total for label, value in cleaned.items()}


class SignalFusionEngine:
    """Inference over the base table plus one user's delta."""

    def __init__(
        self,
        delta: PersonalDelta | None = None,
        fusion_config: FusionConfig | None = None,
        confidence_config: ConfidenceConfig | None = None,
    ):
        self.fusion_config = fusion_config or FusionConfig()
        self.confidence_config = confidence_config or ConfidenceConfig()
        self._delta = delta or PersonalDelta()
        self._cache: tuple[str, WeightTable] | None = None

    @property
    def delta(self) -> PersonalDelta:
        return self._delta

    def set_delta(self, delta: PersonalDelta) -> None:
        self._delta = delta

    def effective_weights(self) -> WeightTable:
        signature = self._delta.signature()
        cached = self._cache
        if cached is not None and cached[0] == signature:
            return cached[1]

        weights = merge_weights(BASE_WEIGHTS, self._delta.weights)
        # Signature and table are published together
        self._cache = (signature, weights)
        return weights

    def fuse(self, features: FeatureVector | Mapping[Any, Any]) -> VibeVector:
        if not isinstance(features, FeatureVector):
            features = FeatureVector.from_mapping(features)

        weights = self.effective_weights()
        sharpness = self.fusion_config.logistic_sharpness

        squashed: VibeVector = {}
        for label in LABELS:
            raw = sum(features.get(category) * weights[category][label] for category in CATEGORIES)
            squashed[label] = logistic(raw, sharpness)

        return renormalize(squashed)

    def evaluate(self, features: FeatureVector | Mapping[Any, Any]) -> VibeReading:
        """Fuse, pick the top label and attach confidence and latency."""
        started = time.perf_counter()

        if not isinstance(features, FeatureVector):
            features = FeatureVector.from_mapping(features)
        vector = self.fuse(features)
        label = top_label(vector)
        confidence = estimate_confidence(features, self.confidence_config)

        latency_ms = (time.perf_counter() - started) * 1000
        return VibeReading(
            label=label,
            confidence=confidence,
            vector=vector,
            features=features,
            latency_ms=latency_ms,
        )
