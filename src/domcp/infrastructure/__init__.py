"""Infrastructure layer: SQLite model store and the per-session workspace.

The service layer bridges between domain models and infrastructure.
"""
