from __future__ import annotations
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from ..base import Base


class Folder(Base):
    __tablename__ = "folders"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, index=True, comment="UUID as string"
    )
    owner_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Child folders and placed items live in the edge tables
    # (see association_tables.py). There is no parent column: a folder's
    # parent is whichever folder lists it in `folder_children`.

    def __repr__(self) -> str:
        return f"<Folder(id={self.id}, title='{self.title}')>"
