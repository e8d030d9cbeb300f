"""Inference engine: labels, feature models, fusion and confidence."""

from vibecore.engine.confidence import estimate_confidence
from vibecore.engine.fusion import SignalFusionEngine, renormalize
from vibecore.engine.labels import BASE_WEIGHTS, CATEGORIES, LABELS, FeatureCategory, Label
from vibecore.engine.models import (
    CorrectionContext,
    CorrectionRecord,
    FeatureVector,
    VibeReading,
    VibeVector,
)
from vibecore.engine.weights import PersonalDelta, merge_weights

__all__ = [
    "BASE_WEIGHTS",
    "CATEGORIES",
    "LABELS",
    "CorrectionContext",
    "CorrectionRecord",
    "FeatureCategory",
    "FeatureVector",
    "Label",
    "PersonalDelta",
    "SignalFusionEngine",
    "VibeReading",
    "VibeVector",
    "estimate_confidence",
    "merge_weights",
    "renormalize",
]
