"""Persisted learning state: key/value store, correction log, weight learner."""
