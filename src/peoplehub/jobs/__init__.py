"""Background and maintenance jobs."""
