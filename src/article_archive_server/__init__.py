"""Per-user article archive with highlight merging and offline-first sync."""

__version__ = "1.0.0"
