from __future__ import annotations

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from vibecore import ARGS_DIR
from vibecore.logging_config import get_logger

logger = get_logger(__name__)


# =============================================================================
# VibeConfig (args/vibe.yaml)
# =============================================================================

class FusionConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    logistic_sharpness: float = Field(default=2.0, gt=0)


class ConfidenceConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    floor: float = Field(default=0.35, ge=0.0, le=1.0)
    ceiling: float = Field(default=0.95, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _floor_below_ceiling(self) -> ConfidenceConfig:
        if self.floor > self.ceiling:
            raise ValueError("confidence floor must not exceed ceiling")
        return self


class LearningConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    learning_rate: float = Field(default=0.005, gt=0, le=1.0)
    immediate_eta: float = Field(default=0.02, gt=0, le=1.0)
    clamp: float = Field(default=0.3, gt=0, le=1.0)
    decay_factor: float = Field(default=0.995, gt=0, le=1.0)
    snap_epsilon: float = Field(default=1e-4, ge=0)
    min_batch_size: int = Field(default=5, ge=1)
    batch_window: int = Field(default=50, ge=1)
    recent_window: int = Field(default=20, ge=1)
    min_cluster_size: int = Field(default=3, ge=1)
    hour_band_size: int = Field(default=4, ge=1, le=24)


class CorrectionsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    max_records: int = Field(default=200, ge=1)
    max_age_days: int = Field(default=90, ge=1)


class TemporalConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    min_samples_per_hour: int = Field(default=2, ge=1)
    confidence_saturation: int = Field(default=5, ge=1)
    optimal_multiplier: float = Field(default=1.5, gt=0)
    dominant_frequency: float = Field(default=0.15, ge=0.0, le=1.0)
    energy_band: float = Field(default=0.15, ge=0.0)
    min_window_hours: int = Field(default=2, ge=1)
    min_hours_for_windows: int = Field(default=8, ge=1)
    min_hours_for_chronotype: int = Field(default=6, ge=1)
    lark_max_hour: int = Field(default=10, ge=0, le=23)
    owl_min_hour: int = Field(default=20, ge=0, le=23)
    min_weekday_samples: int = Field(default=5, ge=1)
    min_weekend_samples: int = Field(default=3, ge=1)
    specialized_hour_confidence: float = Field(default=0.4, ge=0.0, le=1.0)


class SequencesConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    min_length: int = Field(default=2, ge=1)
    max_length: int = Field(default=4, ge=1)
    min_samples: int = Field(default=3, ge=1)
    max_gap_hours: float = Field(default=8.0, gt=0)
    confidence_saturation: int = Field(default=8, ge=1)
    prediction_min_confidence: float = Field(default=0.4, ge=0.0, le=1.0)
    prediction_min_probability: float = Field(default=0.1, ge=0.0, le=1.0)
    max_predictions: int = Field(default=3, ge=1)
    weekend_margin: float = Field(default=0.2, ge=0.0, le=1.0)
    min_group_samples: int = Field(default=3, ge=1)
    venue_min_probability: float = Field(default=0.4, ge=0.0, le=1.0)
    venue_min_samples: int = Field(default=3, ge=1)
    trigger_min_confidence: float = Field(default=0.3, ge=0.0, le=1.0)
    max_triggers: int = Field(default=10, ge=1)

    @model_validator(mode="after")
    def _lengths_ordered(self) -> SequencesConfig:
        if self.min_length > self.max_length:
            raise ValueError("sequence min_length must not exceed max_length")
        return self


class VenuesConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    confidence_saturation: int = Field(default=10, ge=1)
    min_confidence: float = Field(default=0.2, ge=0.0, le=1.0)
    transition_min_samples: int = Field(default=3, ge=1)
    transition_confidence_saturation: int = Field(default=8, ge=1)
    max_gap_hours: float = Field(default=8.0, gt=0)
    default_dwell_minutes: float = Field(default=45.0, gt=0)
    recommendation_min_confidence: float = Field(default=0.3, ge=0.0, le=1.0)
    recommendation_min_score: float = Field(default=0.3, ge=0.0, le=1.0)


class InsightsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    min_samples: int = Field(default=15, ge=1)
    cache_ttl_hours: float = Field(default=24.0, gt=0)


class VibeConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    fusion: FusionConfig = Field(default_factory=FusionConfig)
    confidence: ConfidenceConfig = Field(default_factory=ConfidenceConfig)
    learning: LearningConfig = Field(default_factory=LearningConfig)
    corrections: CorrectionsConfig = Field(default_factory=CorrectionsConfig)
    temporal: TemporalConfig = Field(default_factory=TemporalConfig)
    sequences: SequencesConfig = Field(default_factory=SequencesConfig)
    venues: VenuesConfig = Field(default_factory=VenuesConfig)
    insights: InsightsConfig = Field(default_factory=InsightsConfig)


# =============================================================================
# load_and_validate
# =============================================================================

_CONFIG_MAP: dict[str, type[BaseModel]] = {
    "vibe": VibeConfig,
}


def load_and_validate(config_name: str, model_class: type[BaseModel] | None = None) -> BaseModel:
    if model_class is None:
        model_class = _CONFIG_MAP.get(config_name)
        if model_class is None:
            raise ValueError(f"Unknown config: {config_name}. Available: {list(_CONFIG_MAP.keys())}")

    yaml_path = ARGS_DIR / f"{config_name}.yaml"

    try:
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}

        return model_class.model_validate(raw)
    except Exception as e:
        logger.warning("config_validation_failed", config=config_name, error=str(e))
        return model_class()


def load_config() -> VibeConfig:
    """Load args/vibe.yaml, falling back to defaults."""
    return load_and_validate("vibe", VibeConfig)
