"""SQLAlchemy Core table definitions for the domcp store.

One row per workspace. The whole DomainModel is stored as a JSON
document so a save replaces the record atomically.
"""

from __future__ import annotations

from sqlalchemy import Column, Index, MetaData, Table, Text

metadata = MetaData()

projects = Table(
    "projects",
    metadata,
    Column("workspace_id", Text, primary_key=True),
    Column("project_name", Text, nullable=False),
    Column("model_json", Text, nullable=False),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
)

Index("ix_projects_updated_at", projects.c.updated_at)
