"""
Tool: Pattern Cache
Purpose: Reuse the last computed insight while the log is unchanged

A snapshot is valid while:
    - its log_hash matches the hash of the current correction log
    - it is younger than the TTL
    - its schema version matches SNAPSHOT_VERSION

The cache is an instance owned by the service, backed by the
vibe-pattern-cache-v1 key in the state store.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from vibecore.config_models import InsightsConfig
from vibecore.learning import state_store
from vibecore.logging_config import get_logger

logger = get_logger(__name__)

SNAPSHOT_VERSION = 1


@dataclass
class PatternSnapshot:
    insight: dict[str, Any]
    log_hash: str
    computed_at: datetime
    version: int = SNAPSHOT_VERSION

    def is_fresh(self, log_hash: str, ttl: timedelta, now: datetime | None = None) -> bool:
        if self.version != SNAPSHOT_VERSION or self.log_hash != log_hash:
            return False
        return (now or datetime.now()) - self.computed_at < ttl

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "log_hash": self.log_hash,
            "computed_at": self.computed_at.isoformat(),
            "insight": self.insight,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PatternSnapshot:
        if not isinstance(data, dict) or not isinstance(data.get("insight"), dict):
            raise ValueError("pattern snapshot must be a mapping with an insight")
        return cls(
            insight=data["insight"],
            log_hash=str(data["log_hash"]),
            computed_at=datetime.fromisoformat(data["computed_at"]),
            version=int(data.get("version", 0)),
        )


class PatternCache:
    """Per-user snapshot cache keyed by log hash with a wall-clock TTL."""

    def __init__(self, config: InsightsConfig | None = None):
        self.config = config or InsightsConfig()

    @property
    def ttl(self) -> timedelta:
        return timedelta(hours=self.config.cache_ttl_hours)

    def get(self, user_id: str, log_hash: str, now: datetime | None = None) -> PatternSnapshot | None:
        """Return the stored snapshot if it is still valid for log_hash."""
        result = state_store.read_json(state_store.pattern_cache_key(user_id))
        if not result.ok or result.value is None:
            return None

        try:
            snapshot = PatternSnapshot.from_dict(result.value)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("pattern_cache_corrupt", user_id=user_id, error=str(e))
            return None

        if not snapshot.is_fresh(log_hash, self.ttl, now):
            logger.debug("pattern_cache_stale", user_id=user_id)
            return None
        return snapshot

    def put(
        self,
        user_id: str,
        insight: dict[str, Any],
        log_hash: str,
        now: datetime | None = None,
    ) -> PatternSnapshot:
        snapshot = PatternSnapshot(insight=insight, log_hash=log_hash, computed_at=now or datetime.now())
        state_store.write_json(state_store.pattern_cache_key(user_id), snapshot.to_dict())
        return snapshot

    def invalidate(self, user_id: str) -> dict[str, Any]:
        return state_store.delete_keys([state_store.pattern_cache_key(user_id)])
