"""
db/models/scraped_record.py

Immutable result of one scrape execution.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, PortableJSON, utcnow

if TYPE_CHECKING:
    from db.models.scraper_job import ScraperJob


class ScrapedRecord(Base):
    __tablename__ = "scraped_records"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("scraper_jobs.id", ondelete="CASCADE"),
        nullable=False,
    )
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[dict[str, Any]] = mapped_column(
        PortableJSON,
        nullable=False,
        comment="Type-specific structured payload",
    )
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",
        PortableJSON,
        nullable=True,
        comment="Small summary: counts, averages, extraction coverage",
    )
    content_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="sha256 of the canonical JSON content",
    )
    scraped_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    job: Mapped[ScraperJob] = relationship(back_populates="records")

    __table_args__ = (
        Index("ix_scraped_records_job_id_scraped_at", "job_id", "scraped_at"),
        Index("ix_scraped_records_tenant_id_scraped_at", "tenant_id", "scraped_at"),
        Index("ix_scraped_records_tenant_id_type", "tenant_id", "type"),
    )
