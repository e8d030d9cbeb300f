"""Pattern mining over the correction log.

Every analyzer is a pure function of a log snapshot; only the pattern
cache touches persisted state.
"""
