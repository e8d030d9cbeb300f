"""vibecore Test Suite

This package contains all tests for the vibecore inference and learning core.

Test organization:
- unit/: Unit tests for individual modules
  - engine/: Labels, models, fusion, confidence, weight tables
  - learning/: State store, correction log, weight learner, service
  - analysis/: Temporal, sequence and venue analyzers, insights, cache
  - test_config_models.py, test_cli.py: Config loading and the CLI

Running tests:
    # All tests
    pytest

    # Specific area
    pytest tests/unit/learning/
"""
