"""
Confidence Estimator

Signals that agree (low variance) raise confidence; a single very strong
signal also raises it, even when the others disagree.

    agreement  = 1 - min(1, sqrt(population variance))
    confidence = clamp(floor, ceiling, 0.5 * agreement + 0.5 * max(scalars))
"""

from __future__ import annotations

import math
from statistics import pvariance

from vibecore.config_models import ConfidenceConfig
from vibecore.engine.models import FeatureVector


def signal_agreement(values: list[float]) -> float:
    if not values:
        return 0.0
    return 1.0 - min(1.0, math.sqrt(pvariance(values)))


def estimate_confidence(features: FeatureVector, config: ConfidenceConfig | None = None) -> float:
    config = config or ConfidenceConfig()
    values = features.values()

    agreement = signal_agreement(values)
    strongest = max(values) if values else 0.0
    raw = 0.5 * agreement + 0.5 * strongest

    return max(config.floor, min(config.ceiling, raw))
