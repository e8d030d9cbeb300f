"""Shared test fixtures for vibecore tests.

This module provides common fixtures used across all test modules:
- Database isolation with temporary files
- Standard test user and feature data
- CorrectionRecord factory with deterministic timestamps

Usage:
    def test_something(vibe_store, make_record):
        record = make_record("chill", predicted="hype", hour=21)
        ...
"""

import os
import tempfile
from collections.abc import Callable, Generator
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from vibecore.config_models import VibeConfig
from vibecore.engine.labels import Label
from vibecore.engine.models import CorrectionContext, CorrectionRecord, FeatureVector


# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────

# A Monday morning; tests derive every other timestamp from this
BASE_TIME = datetime(2026, 3, 2, 9, 0)


# ─────────────────────────────────────────────────────────────────────────────
# Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_db() -> Generator[Path, None, None]:
    """Create a temporary database file for testing.

    The database file is automatically deleted after the test completes.

    Yields:
        Path to the temporary database file
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    # Cleanup
    if db_path.exists():
        os.unlink(db_path)


@pytest.fixture
def vibe_store(temp_db: Path):
    """Point the state store at a temporary database."""
    with patch("vibecore.learning.state_store.DB_PATH", temp_db):
        from vibecore.learning import state_store

        # Force table creation
        conn = state_store.get_connection()
        conn.close()

        yield state_store


# ─────────────────────────────────────────────────────────────────────────────
# User and Config Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def mock_user_id() -> str:
    """Standard test user ID."""
    return "test_user_123"


@pytest.fixture
def vibe_config() -> VibeConfig:
    """Default configuration, independent of args/vibe.yaml."""
    return VibeConfig()


# ─────────────────────────────────────────────────────────────────────────────
# Feature and Record Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def uniform_features() -> FeatureVector:
    return FeatureVector(
        circadian=0.5, movement=0.5, venue_energy=0.5, device_usage=0.5, weather=0.5
    )


@pytest.fixture
def circadian_heavy_features() -> FeatureVector:
    return FeatureVector(
        circadian=0.9, movement=0.1, venue_energy=0.1, device_usage=0.1, weather=0.1
    )


@pytest.fixture
def make_record() -> Callable[..., CorrectionRecord]:
    """Factory for CorrectionRecords.

    Context hour and weekday default to the timestamp's own values.
    The predicted vector defaults to 0.5 on the predicted label and an
    even split of the rest.
    """

    def _make(
        corrected: Label | str,
        predicted: Label | str = Label.FOCUSED,
        timestamp: datetime | None = None,
        hour: int | None = None,
        weekday: int | None = None,
        venue: str | None = None,
        dwell_minutes: float | None = None,
        features: FeatureVector | None = None,
        predicted_vector: dict[Label, float] | None = None,
    ) -> CorrectionRecord:
        ts = timestamp or BASE_TIME
        predicted_label = Label.parse(predicted)
        if predicted_vector is None:
            rest = 0.5 / (len(Label) - 1)
            predicted_vector = {
                label: (0.5 if label == predicted_label else rest) for label in Label
            }
        return CorrectionRecord(
            timestamp=ts,
            predicted_label=predicted_label,
            predicted_vector=predicted_vector,
            corrected=Label.parse(corrected),
            features=features or FeatureVector(circadian=0.6, movement=0.4, weather=0.5),
            context=CorrectionContext(
                hour=ts.hour if hour is None else hour,
                weekday=ts.weekday() if weekday is None else weekday,
                venue=venue,
                dwell_minutes=dwell_minutes,
            ),
        )

    return _make


@pytest.fixture
def make_log(make_record) -> Callable[..., list[CorrectionRecord]]:
    """Build a time-ordered log from a list of labels, spaced step apart."""

    def _make(
        labels: list[Label | str],
        start: datetime = BASE_TIME,
        step: timedelta = timedelta(minutes=30),
        **kwargs,
    ) -> list[CorrectionRecord]:
        return [
            make_record(label, timestamp=start + step * i, **kwargs) for i, label in enumerate(labels)
        ]

    return _make
