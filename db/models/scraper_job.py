"""
db/models/scraper_job.py

Scheduled scrape configuration and run state for one tenant.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, PortableJSON, TimestampMixin

if TYPE_CHECKING:
    from db.models.scraped_record import ScrapedRecord


class ScraperJob(Base, TimestampMixin):
    __tablename__ = "scraper_jobs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="COMPETITOR_PRICING, COMPETITOR_PRODUCTS, SOCIAL_MEDIA_METRICS, "
        "MARKET_TRENDS, NEWS_SENTIMENT, INDUSTRY_REPORTS",
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    frequency: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="One of four cron cadences: daily, weekly, monthly, yearly",
    )
    config: Mapped[dict[str, Any]] = mapped_column(
        PortableJSON,
        nullable=False,
        default=dict,
        comment="Per-scraper options such as selectors, delay, retries",
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="ACTIVE",
        comment="ACTIVE, PAUSED, DISABLED, ERROR",
    )
    last_run: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    next_run: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    records: Mapped[list[ScrapedRecord]] = relationship(
        back_populates="job",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_scraper_jobs_tenant_id", "tenant_id"),
        Index("ix_scraper_jobs_status_next_run", "status", "next_run"),
        Index("ix_scraper_jobs_tenant_type_status", "tenant_id", "type", "status"),
    )
