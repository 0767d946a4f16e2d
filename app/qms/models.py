from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class StoredRecord(Base):
    """
    One persisted engine entity (process, issue, action, ...) as a JSON payload.

    The engine treats storage as an opaque keyed record store; this table is the
    SQL back-end for it.
    """

    __tablename__ = "stored_records"
    __table_args__ = (
        UniqueConstraint("collection", "record_id", name="uq_stored_records_collection_record_id"),
        Index("idx_stored_records_collection", "collection"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    collection: Mapped[str] = mapped_column(String(64), nullable=False)  # e.g. "actions"
    record_id: Mapped[str] = mapped_column(String(64), nullable=False)  # entity id (uuid)
    payload_json: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
