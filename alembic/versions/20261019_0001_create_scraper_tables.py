"""create scraper_jobs and scraped_records tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "scraper_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("frequency", sa.String(length=32), nullable=False),
        sa.Column("config", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("last_run", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_run", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_scraper_jobs_tenant_id", "scraper_jobs", ["tenant_id"], unique=False)
    op.create_index(
        "ix_scraper_jobs_status_next_run",
        "scraper_jobs",
        ["status", "next_run"],
        unique=False,
    )
    op.create_index(
        "ix_scraper_jobs_tenant_type_status",
        "scraper_jobs",
        ["tenant_id", "type", "status"],
        unique=False,
    )

    op.create_table(
        "scraped_records",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("job_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("content", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("content_hash", sa.String(length=64), nullable=False),
        sa.Column("scraped_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["job_id"], ["scraper_jobs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_scraped_records_job_id_scraped_at",
        "scraped_records",
        ["job_id", "scraped_at"],
        unique=False,
    )
    op.create_index(
        "ix_scraped_records_tenant_id_scraped_at",
        "scraped_records",
        ["tenant_id", "scraped_at"],
        unique=False,
    )
    op.create_index(
        "ix_scraped_records_tenant_id_type",
        "scraped_records",
        ["tenant_id", "type"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_scraped_records_tenant_id_type", table_name="scraped_records")
    op.drop_index("ix_scraped_records_tenant_id_scraped_at", table_name="scraped_records")
    op.drop_index("ix_scraped_records_job_id_scraped_at", table_name="scraped_records")
    op.drop_table("scraped_records")
    op.drop_index("ix_scraper_jobs_tenant_type_status", table_name="scraper_jobs")
    op.drop_index("ix_scraper_jobs_status_next_run", table_name="scraper_jobs")
    op.drop_index("ix_scraper_jobs_tenant_id", table_name="scraper_jobs")
    op.drop_table("scraper_jobs")
