"""vibecore - On-device vibe inference and personal learning

Philosophy:
    Learn from corrections, not configuration forms.
    Nobody fills out a mood survey.
    Observe, infer, adapt - never require.

Core Principle:
    Every correction is a data point. The engine should get closer to
    the user over time without ever retraining from scratch or asking
    a server for help.

Packages:
    engine/: Signal fusion and confidence
        - labels.py: Closed vibe and feature-category enumerations
        - models.py: FeatureVector, VibeReading, CorrectionRecord
        - fusion.py: Weighted logistic fusion into a VibeVector
        - confidence.py: Agreement-based confidence estimate

    learning/: Persisted per-user state
        - state_store.py: SQLite key/value table with typed load results
        - corrections.py: Bounded, append-only correction log
        - weights.py: Online weight learner (personal delta table)

    analysis/: Pattern mining over the correction log
        - temporal.py: Hourly micro-patterns, weekly curves, energy windows
        - sequences.py: Label n-gram transitions and contextual triggers
        - venues.py: Venue impact and venue-to-venue transitions
        - insights.py: Personality insight aggregation
        - pattern_cache.py: Hash + TTL keyed insight snapshots

    service.py: Per-user orchestration (inference, corrections, insights)

Database: data/vibe.db
    - kv_entries: Versioned per-user state blobs

Configuration: args/vibe.yaml
"""

from pathlib import Path

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
ARGS_DIR = PROJECT_ROOT / "args"
DB_PATH = DATA_DIR / "vibe.db"
CONFIG_PATH = ARGS_DIR / "vibe.yaml"

__version__ = "0.1.0"

__all__ = [
    "PROJECT_ROOT",
    "DATA_DIR",
    "ARGS_DIR",
    "DB_PATH",
    "CONFIG_PATH",
    "__version__",
]
