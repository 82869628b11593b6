from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import declarative_base, Mapped, mapped_column
from sqlalchemy import Integer, String, DateTime, JSON, func, Index


Base = declarative_base()


class KVRecord(Base):
    """One versioned JSON record of a collection (events, tickets, ...)."""

    __tablename__ = "kv_records"
    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    data: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (Index("ix_kv_records_collection", "collection"),)

    def __repr__(self):
        return f"<KVRecord {self.collection}/{self.key} v{self.version}>"
