"""
Tool: Online Weight Learner
Purpose: Adapt the per-user weight delta from corrections

Two update paths write the same PersonalDelta:

Immediate (one correction, predicted != corrected):
    delta[c][corrected] += eta * scalar_c
    delta[c][predicted] -= eta * scalar_c

Batch (clustered, runs once min_batch_size new corrections have arrived):
    clusters = (hour band, venue) groups + a catch-all of the most recent
    error[c] = mean((1 - p_pred[corrected]) * scalar_c / sum(scalars))
    delta[c][every label] += learning_rate * error[c]

Every write is clamped to [-clamp, clamp]. Decay multiplies the whole
table by decay_factor and snaps near-zero values to 0.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Any

from vibecore.config_models import LearningConfig
from vibecore.engine.labels import CATEGORIES, LABELS, FeatureCategory
from vibecore.engine.models import CorrectionRecord
from vibecore.engine.weights import PersonalDelta
from vibecore.learning import state_store
from vibecore.learning.corrections import records_since
from vibecore.learning.state_store import LoadResult
from vibecore.logging_config import get_logger

logger = get_logger(__name__)

RECENT_CLUSTER = "recent"


# ─────────────────────────────────────────────────────────────────────────────
# Persistence
# ─────────────────────────────────────────────────────────────────────────────


def load_delta(user_id: str) -> LoadResult[PersonalDelta]:
    """Load a user's delta. Missing or corrupt state degrades to all zeros."""
    result = state_store.read_json(state_store.delta_key(user_id))
    if not result.ok:
        return LoadResult(ok=False, value=PersonalDelta(), error=result.error)
    if result.value is None:
        return LoadResult(ok=True, value=PersonalDelta())

    try:
        return LoadResult(ok=True, value=PersonalDelta.from_dict(result.value))
    except (ValueError, TypeError) as e:
        logger.warning("weight_delta_corrupt", user_id=user_id, error=str(e))
        return LoadResult(ok=False, value=PersonalDelta(), error=str(e))


def save_delta(user_id: str, delta: PersonalDelta) -> dict[str, Any]:
    delta.updated_at = datetime.now()
    return state_store.write_json(state_store.delta_key(user_id), delta.to_dict())


# ─────────────────────────────────────────────────────────────────────────────
# Immediate path
# ─────────────────────────────────────────────────────────────────────────────


def apply_correction(
    delta: PersonalDelta, record: CorrectionRecord, config: LearningConfig | None = None
) -> bool:
    """Nudge weights toward the corrected label and away from the prediction.

    Returns False without touching the delta when the prediction was right.
    """
    config = config or LearningConfig()
    if record.predicted_label == record.corrected:
        return False

    for category, scalar in record.features.items():
        step = config.immediate_eta * scalar
        if step == 0:
            continue
        delta.add(category, record.corrected, step, config.clamp)
        delta.add(category, record.predicted_label, -step, config.clamp)

    return True


# ─────────────────────────────────────────────────────────────────────────────
# Batch path
# ─────────────────────────────────────────────────────────────────────────────


def hour_band(hour: int, band_size: int = 4) -> int:
    return hour // band_size


def cluster_corrections(
    records: list[CorrectionRecord], config: LearningConfig | None = None
) -> dict[str, list[CorrectionRecord]]:
    """Group records into hour-band/venue clusters plus a recency cluster.

    Records without a venue only land in the recency cluster. Clusters
    smaller than min_cluster_size are dropped.
    """
    config = config or LearningConfig()

    clusters: dict[str, list[CorrectionRecord]] = defaultdict(list)
    for record in records:
        if record.venue:
            band = hour_band(record.context.hour, config.hour_band_size)
            clusters[f"band:{band}|venue:{record.venue}"].append(record)

    recent = sorted(records, key=lambda r: r.timestamp)[-config.recent_window :]
    if recent:
        clusters[RECENT_CLUSTER] = recent

    return {
        name: members
        for name, members in clusters.items()
        if len(members) >= config.min_cluster_size
    }


def compute_cluster_error(records: list[CorrectionRecord]) -> dict[FeatureCategory, float]:
    """Mean miss weighted by each category's share of total signal."""
    errors = {category: 0.0 for category in CATEGORIES}
    if not records:
        return errors

    for record in records:
        total = record.features.total()
        if total <= 0:
            continue
        miss = 1.0 - record.predicted_probability(record.corrected)
        for category, scalar in record.features.items():
            errors[category] += miss * scalar / total

    return {category: value / len(records) for category, value in errors.items()}


def pending_batch_records(
    delta: PersonalDelta, records: list[CorrectionRecord]
) -> list[CorrectionRecord]:
    return records_since(records, delta.last_batch_at)


def should_run_batch(
    delta: PersonalDelta, records: list[CorrectionRecord], config: LearningConfig | None = None
) -> bool:
    config = config or LearningConfig()
    return len(pending_batch_records(delta, records)) >= config.min_batch_size


def apply_batch(
    delta: PersonalDelta, records: list[CorrectionRecord], config: LearningConfig | None = None
) -> dict[str, Any]:
    """Run one clustered update over the most recent batch_window records."""
    config = config or LearningConfig()

    window = sorted(records, key=lambda r: r.timestamp)[-config.batch_window :]
    clusters = cluster_corrections(window, config)

    for members in clusters.values():
        errors = compute_cluster_error(members)
        for category, error in errors.items():
            step = config.learning_rate * error
            if step == 0:
                continue
            for label in LABELS:
                delta.add(category, label, step, config.clamp)

    if window:
        delta.last_batch_at = window[-1].timestamp
    delta.batch_count += 1

    logger.debug(
        "batch_update_applied",
        records=len(window),
        clusters=sorted(clusters),
        batch_count=delta.batch_count,
    )
    return {"success": True, "records": len(window), "clusters": len(clusters)}


# ─────────────────────────────────────────────────────────────────────────────
# Decay
# ─────────────────────────────────────────────────────────────────────────────


def decay_delta(delta: PersonalDelta, config: LearningConfig | None = None) -> PersonalDelta:
    config = config or LearningConfig()
    delta.scale(config.decay_factor, config.snap_epsilon)
    return delta
