"""domcp: domain model server for AI coding assistants."""

__version__ = "0.3.0"
