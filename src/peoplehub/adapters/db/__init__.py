"""Application database access."""
