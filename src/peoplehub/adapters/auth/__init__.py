"""Auth persistence."""
