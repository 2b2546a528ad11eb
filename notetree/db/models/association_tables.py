"""
Edge tables for the folder hierarchy.

Each edge row belongs to the folder on the left-hand side (the parent, or the
folder holding an item) and is removed together with it. The right-hand side is
a plain reference: a child id may point at a folder that no longer exists, and
an item id is never checked against the content store.
"""

from datetime import datetime, timezone
from sqlalchemy import Table, Column, String, Text, DateTime, ForeignKey
from ..base import Base

# Folder -> child folder (the `children` set of a folder)
folder_children = Table(
    "folder_children",
    Base.metadata,
    Column(
        "parent_id",
        String(36),
        ForeignKey("folders.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("child_id", String(36), primary_key=True, index=True),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    ),
)

# Folder -> opaque item reference (the `items` set of a folder)
folder_items = Table(
    "folder_items",
    Base.metadata,
    Column(
        "folder_id",
        String(36),
        ForeignKey("folders.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("item_id", Text, primary_key=True, index=True),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    ),
)
