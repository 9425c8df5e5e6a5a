"""Click command groups."""
