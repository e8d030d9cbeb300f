"""
Tool: Correction Store
Purpose: Bounded, append-only log of user corrections

A correction is the moment the user overrides the predicted vibe. The log
is the only training signal the learner and analyzers ever see, so it is
kept in strict timestamp order and bounded two ways:
    - count: at most max_records, oldest dropped first
    - age:   records older than max_age_days are pruned

Stored document:
    {"version": 1, "records": [<CorrectionRecord.to_dict()>, ...]}
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timedelta
from typing import Any

from vibecore.config_models import CorrectionsConfig
from vibecore.engine.models import CorrectionRecord, to_local_naive
from vibecore.learning import state_store
from vibecore.learning.state_store import LoadResult
from vibecore.logging_config import get_logger

logger = get_logger(__name__)

LOG_SCHEMA_VERSION = 1


def serialize_log(records: list[CorrectionRecord]) -> dict[str, Any]:
    return {"version": LOG_SCHEMA_VERSION, "records": [r.to_dict() for r in records]}


def deserialize_log(data: Any) -> list[CorrectionRecord]:
    """Parse a stored log document, raising ValueError if it is malformed."""
    if not isinstance(data, dict):
        raise ValueError("correction log must be a mapping")
    if data.get("version") != LOG_SCHEMA_VERSION:
        raise ValueError(f"Unsupported correction log version: {data.get('version')}")

    raw_records = data.get("records")
    if not isinstance(raw_records, list):
        raise ValueError("correction log records must be a list")

    try:
        records = [CorrectionRecord.from_dict(item) for item in raw_records]
        records.sort(key=lambda r: r.timestamp)
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"malformed correction record: {e}") from e

    return records


def log_hash(records: list[CorrectionRecord]) -> str:
    """SHA-256 over the canonical serialized log."""
    payload = json.dumps(serialize_log(records), sort_keys=True)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def prune_expired(
    records: list[CorrectionRecord],
    config: CorrectionsConfig | None = None,
    now: datetime | None = None,
) -> list[CorrectionRecord]:
    config = config or CorrectionsConfig()
    cutoff = (to_local_naive(now) if now else datetime.now()) - timedelta(days=config.max_age_days)
    return [r for r in records if r.timestamp >= cutoff]


def append_record(
    records: list[CorrectionRecord],
    record: CorrectionRecord,
    config: CorrectionsConfig | None = None,
    now: datetime | None = None,
) -> list[CorrectionRecord]:
    """Return a new log with record appended and both bounds enforced."""
    config = config or CorrectionsConfig()

    updated = [*records, record]
    updated.sort(key=lambda r: r.timestamp)
    updated = prune_expired(updated, config, now=now)

    if len(updated) > config.max_records:
        updated = updated[-config.max_records :]
    return updated


def load_corrections(user_id: str) -> LoadResult[list[CorrectionRecord]]:
    """Load a user's log. Missing or corrupt state degrades to an empty log."""
    result = state_store.read_json(state_store.corrections_key(user_id))
    if not result.ok:
        return LoadResult(ok=False, value=[], error=result.error)
    if result.value is None:
        return LoadResult(ok=True, value=[])

    try:
        return LoadResult(ok=True, value=deserialize_log(result.value))
    except ValueError as e:
        logger.warning("corrections_corrupt", user_id=user_id, error=str(e))
        return LoadResult(ok=False, value=[], error=str(e))


def save_corrections(user_id: str, records: list[CorrectionRecord]) -> dict[str, Any]:
    result = state_store.write_json(state_store.corrections_key(user_id), serialize_log(records))
    if result["success"]:
        result["count"] = len(records)
    return result


def records_since(records: list[CorrectionRecord], since: datetime | None) -> list[CorrectionRecord]:
    if since is None:
        return list(records)
    return [r for r in records if r.timestamp > since]
