"""SQLite persistence for stored domain models."""
