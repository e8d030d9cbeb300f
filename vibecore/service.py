"""
VibeService - per-user orchestration of inference, learning and insights

Inference reads a per-user SignalFusionEngine without taking any lock.
Everything that mutates persisted state (correction append, weight
updates, decay, reset) runs under that user's lock, so two corrections
for the same user can never interleave their read-modify-write of the
delta table. Different users never contend.

Usage:
    from vibecore.service import VibeService

    service = VibeService()
    reading = service.infer("alice", {"circadian": 0.8, "movement": 0.6})
    service.record_correction("alice", reading.label, "chill", reading.features, context)
    insight = service.get_insights("alice")
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from vibecore.analysis.insights import aggregate_insights
from vibecore.analysis.pattern_cache import PatternCache
from vibecore.analysis.sequences import PredictiveInsight, detect_sequences, predict_next_vibe
from vibecore.analysis.venues import VenueRecommendation, analyze_venue_impact, get_optimal_venues
from vibecore.config_models import VibeConfig, load_config
from vibecore.engine.fusion import SignalFusionEngine
from vibecore.engine.labels import Label
from vibecore.engine.models import (
    CorrectionContext,
    CorrectionRecord,
    FeatureVector,
    VibeReading,
    to_local_naive,
    vector_from_dict,
)
from vibecore.engine.weights import PersonalDelta
from vibecore.learning import corrections, state_store, weights
from vibecore.logging_config import get_logger, user_context

logger = get_logger(__name__)


class VibeService:
    """Owns per-user engines, locks and the pattern cache."""

    def __init__(self, config: VibeConfig | None = None):
        self.config = config or load_config()
        self._engines: dict[str, SignalFusionEngine] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()
        self._pattern_cache = PatternCache(self.config.insights)

    # ─────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────

    def _user_lock(self, user_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_id] = lock
            return lock

    def _new_engine(self, delta: PersonalDelta) -> SignalFusionEngine:
        return SignalFusionEngine(
            delta=delta,
            fusion_config=self.config.fusion,
            confidence_config=self.config.confidence,
        )

    def _engine(self, user_id: str) -> SignalFusionEngine:
        engine = self._engines.get(user_id)
        if engine is not None:
            return engine

        result = weights.load_delta(user_id)
        if result.degraded:
            logger.warning("weight_delta_degraded", user_id=user_id, error=result.error)

        with self._guard:
            # Another thread may have loaded it first
            return self._engines.setdefault(user_id, self._new_engine(result.value))

    def _load_log(self, user_id: str) -> list[CorrectionRecord]:
        result = corrections.load_corrections(user_id)
        if result.degraded:
            logger.warning("corrections_degraded", user_id=user_id, error=result.error)
        return result.value

    # ─────────────────────────────────────────────────────────────────────
    # Inference
    # ─────────────────────────────────────────────────────────────────────

    def infer(self, user_id: str, features: FeatureVector | Mapping[str, Any]) -> VibeReading:
        """Predict the current vibe from one set of feature scalars."""
        return self._engine(user_id).evaluate(features)

    def get_delta(self, user_id: str) -> PersonalDelta:
        return self._engine(user_id).delta.copy()

    # ─────────────────────────────────────────────────────────────────────
    # Learning
    # ─────────────────────────────────────────────────────────────────────

    def record_correction(
        self,
        user_id: str,
        predicted: Label | str,
        corrected: Label | str,
        features: FeatureVector | Mapping[str, Any],
        context: CorrectionContext | Mapping[str, Any] | None = None,
        predicted_vector: Mapping[Label | str, float] | None = None,
        timestamp: datetime | None = None,
    ) -> None:
        """
        Log a user override and update the personal weights.

        The immediate update runs on every correction; the clustered batch
        update runs once min_batch_size corrections have arrived since the
        previous batch.

        Raises:
            ValueError: For an unknown label or an invalid context
        """
        ts = to_local_naive(timestamp) if timestamp else datetime.now()
        predicted_label = Label.parse(predicted)
        corrected_label = Label.parse(corrected)
        if not isinstance(features, FeatureVector):
            features = FeatureVector.from_mapping(features)

        if context is None:
            context = CorrectionContext.from_timestamp(ts)
        elif not isinstance(context, CorrectionContext):
            context = CorrectionContext(
                hour=context.get("hour", ts.hour),
                weekday=context.get("weekday", ts.weekday()),
                venue=context.get("venue"),
                dwell_minutes=context.get("dwell_minutes"),
            )

        with user_context(user_id), self._user_lock(user_id):
            engine = self._engine(user_id)
            if predicted_vector is None:
                predicted_vector = engine.fuse(features)
            else:
                predicted_vector = vector_from_dict(predicted_vector)

            record = CorrectionRecord(
                timestamp=ts,
                predicted_label=predicted_label,
                predicted_vector=predicted_vector,
                corrected=corrected_label,
                features=features,
                context=context,
            )

            log = corrections.append_record(
                self._load_log(user_id), record, self.config.corrections, now=ts
            )
            corrections.save_corrections(user_id, log)

            delta = engine.delta.copy()
            changed = weights.apply_correction(delta, record, self.config.learning)

            batched = False
            if weights.should_run_batch(delta, log, self.config.learning):
                weights.apply_batch(delta, log, self.config.learning)
                batched = True

            if changed or batched:
                weights.save_delta(user_id, delta)
                engine.set_delta(delta)

            logger.info(
                "correction_recorded",
                predicted=predicted_label.value,
                corrected=corrected_label.value,
                log_size=len(log),
                batch=batched,
            )

    def run_maintenance(self, user_id: str, now: datetime | None = None) -> dict[str, Any]:
        """Decay the weight delta and prune aged corrections."""
        with user_context(user_id), self._user_lock(user_id):
            engine = self._engine(user_id)
            delta = weights.decay_delta(engine.delta.copy(), self.config.learning)
            delta_result = weights.save_delta(user_id, delta)
            engine.set_delta(delta)

            log = self._load_log(user_id)
            pruned = corrections.prune_expired(log, self.config.corrections, now=now)
            removed = len(log) - len(pruned)
            if removed:
                corrections.save_corrections(user_id, pruned)

            logger.info("maintenance_completed", pruned=removed)
        return {
            "success": delta_result["success"],
            "pruned": removed,
            "remaining": len(pruned),
            "max_abs_delta": round(delta.max_abs(), 6),
        }

    def reset_user(self, user_id: str) -> dict[str, Any]:
        """Delete every persisted blob for the user and drop the cached engine."""
        with user_context(user_id), self._user_lock(user_id):
            result = state_store.delete_keys(state_store.user_keys(user_id))
            with self._guard:
                self._engines.pop(user_id, None)
            logger.info("user_reset", success=result["success"])
        return result

    # ─────────────────────────────────────────────────────────────────────
    # Insights
    # ─────────────────────────────────────────────────────────────────────

    def get_insights(self, user_id: str, force_refresh: bool = False) -> dict[str, Any]:
        """
        Return the user's PersonalityInsight, reusing the cached snapshot
        when the log is unchanged and the snapshot is within its TTL.
        """
        log = self._load_log(user_id)
        log_hash = corrections.log_hash(log)

        if not force_refresh:
            snapshot = self._pattern_cache.get(user_id, log_hash)
            if snapshot is not None:
                return {
                    "success": True,
                    "cached": True,
                    "log_hash": log_hash,
                    "computed_at": snapshot.computed_at.isoformat(),
                    "insight": snapshot.insight,
                }

        insight = aggregate_insights(log, self.config).to_dict()
        snapshot = self._pattern_cache.put(user_id, insight, log_hash)
        return {
            "success": True,
            "cached": False,
            "log_hash": log_hash,
            "computed_at": snapshot.computed_at.isoformat(),
            "insight": insight,
        }

    def predict_next(
        self,
        user_id: str,
        current: Label | str,
        hour: int | None = None,
        is_weekend: bool | None = None,
        venue: str | None = None,
    ) -> PredictiveInsight:
        now = datetime.now()
        sequences = detect_sequences(self._load_log(user_id), self.config.sequences)
        return predict_next_vibe(
            Label.parse(current),
            sequences,
            hour=now.hour if hour is None else hour,
            is_weekend=now.weekday() >= 5 if is_weekend is None else is_weekend,
            venue=venue,
            config=self.config.sequences,
        )

    def optimal_venues(self, user_id: str, target: Label | str) -> list[VenueRecommendation]:
        impacts = analyze_venue_impact(self._load_log(user_id), self.config.venues)
        return get_optimal_venues(impacts, Label.parse(target), self.config.venues)
