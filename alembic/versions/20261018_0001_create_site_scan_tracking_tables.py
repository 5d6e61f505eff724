"""create customer, site scan, recommendation and tracking queue tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "customers",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("website_url", sa.String(length=2048), nullable=True),
        sa.Column(
            "google_account_id",
            sa.String(length=255),
            nullable=True,
            comment="Connected Google account; required before trackings are created",
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_customers_tenant_id", "customers", ["tenant_id"], unique=False)

    op.create_table(
        "site_scans",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("website_url", sa.String(length=2048), nullable=False),
        sa.Column("total_pages_scanned", sa.Integer(), nullable=True),
        sa.Column("total_recommendations", sa.Integer(), nullable=True),
        sa.Column(
            "tracking_readiness_score",
            sa.Integer(),
            nullable=True,
            comment="0-100 severity-weighted readiness score",
        ),
        sa.Column("readiness_narrative", sa.Text(), nullable=True),
        sa.Column(
            "recommendation_counts",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="critical / important / recommended / optional counts",
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_site_scans_customer_id", "site_scans", ["customer_id"], unique=False)
    op.create_index("ix_site_scans_tenant_id", "site_scans", ["tenant_id"], unique=False)
    op.create_index("ix_site_scans_status", "site_scans", ["status"], unique=False)

    op.create_table(
        "scan_pages",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("scan_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("url", sa.String(length=2048), nullable=False),
        sa.Column("title", sa.String(length=1024), nullable=True),
        sa.Column("depth", sa.Integer(), nullable=False),
        sa.Column(
            "page_type",
            sa.String(length=50),
            nullable=True,
            comment="checkout, cart, pricing, contact, blog, ...",
        ),
        sa.Column("has_form", sa.Boolean(), nullable=False),
        sa.Column("has_cta", sa.Boolean(), nullable=False),
        sa.Column("has_phone_link", sa.Boolean(), nullable=False),
        sa.Column("has_email_link", sa.Boolean(), nullable=False),
        sa.Column("importance_score", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["scan_id"], ["site_scans.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_scan_pages_scan_id", "scan_pages", ["scan_id"], unique=False)
    op.create_index("ix_scan_pages_scan_id_url", "scan_pages", ["scan_id", "url"], unique=False)

    op.create_table(
        "trackings",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("selector", sa.Text(), nullable=True),
        sa.Column("url_pattern", sa.Text(), nullable=True),
        sa.Column("selector_config", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("config", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("destinations", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("ga4_event_name", sa.String(length=100), nullable=True),
        sa.Column("gtm_tag_id", sa.String(length=64), nullable=True),
        sa.Column("gtm_trigger_id", sa.String(length=64), nullable=True),
        sa.Column("gtm_tag_id_ads", sa.String(length=64), nullable=True),
        sa.Column("conversion_action_id", sa.String(length=64), nullable=True),
        sa.Column("ads_conversion_label", sa.String(length=128), nullable=True),
        sa.Column("is_auto_crawled", sa.Boolean(), nullable=False),
        sa.Column(
            "crawl_metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="scan_id, recommendation_id, page_url, severity",
        ),
        sa.Column("selector_confidence", sa.Float(), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("last_sync_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_trackings_customer_id", "trackings", ["customer_id"], unique=False)
    op.create_index("ix_trackings_tenant_id", "trackings", ["tenant_id"], unique=False)
    op.create_index("ix_trackings_status", "trackings", ["status"], unique=False)

    op.create_table(
        "tracking_recommendations",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("scan_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("tracking_type", sa.String(length=64), nullable=False),
        sa.Column("severity", sa.String(length=16), nullable=False),
        sa.Column("severity_reason", sa.Text(), nullable=True),
        sa.Column("selector", sa.Text(), nullable=True),
        sa.Column("selector_config", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("selector_confidence", sa.Float(), nullable=True),
        sa.Column("url_pattern", sa.Text(), nullable=True),
        sa.Column("page_url", sa.String(length=2048), nullable=True),
        sa.Column("funnel_stage", sa.String(length=64), nullable=True),
        sa.Column("suggested_config", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("suggested_ga4_event_name", sa.String(length=100), nullable=True),
        sa.Column("suggested_destinations", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("tracking_id", postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["scan_id"], ["site_scans.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tracking_id"], ["trackings.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_tracking_recommendations_scan_id",
        "tracking_recommendations",
        ["scan_id"],
        unique=False,
    )
    op.create_index(
        "ix_tracking_recommendations_scan_id_status",
        "tracking_recommendations",
        ["scan_id", "status"],
        unique=False,
    )
    op.create_index(
        "ix_tracking_recommendations_tracking_id",
        "tracking_recommendations",
        ["tracking_id"],
        unique=False,
    )

    op.create_table(
        "tracking_batches",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("scan_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("total_jobs", sa.Integer(), nullable=False),
        sa.Column("completed", sa.Integer(), nullable=False),
        sa.Column("failed", sa.Integer(), nullable=False),
        sa.Column("paused_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resume_after", sa.DateTime(timezone=True), nullable=True),
        sa.Column("pause_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tracking_batches_status", "tracking_batches", ["status"], unique=False)
    op.create_index("ix_tracking_batches_scan_id", "tracking_batches", ["scan_id"], unique=False)

    op.create_table(
        "tracking_queue_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("batch_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tracking_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("recommendation_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("step", sa.String(length=64), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("max_attempts", sa.Integer(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("error_code", sa.String(length=32), nullable=True),
        sa.Column("next_retry_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["batch_id"], ["tracking_batches.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_tracking_queue_jobs_batch_id_status",
        "tracking_queue_jobs",
        ["batch_id", "status"],
        unique=False,
    )
    op.create_index("ix_tracking_queue_jobs_tracking_id", "tracking_queue_jobs", ["tracking_id"], unique=False)
    op.create_index("ix_tracking_queue_jobs_status", "tracking_queue_jobs", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_tracking_queue_jobs_status", table_name="tracking_queue_jobs")
    op.drop_index("ix_tracking_queue_jobs_tracking_id", table_name="tracking_queue_jobs")
    op.drop_index("ix_tracking_queue_jobs_batch_id_status", table_name="tracking_queue_jobs")
    op.drop_table("tracking_queue_jobs")

    op.drop_index("ix_tracking_batches_scan_id", table_name="tracking_batches")
    op.drop_index("ix_tracking_batches_status", table_name="tracking_batches")
    op.drop_table("tracking_batches")

    op.drop_index("ix_tracking_recommendations_tracking_id", table_name="tracking_recommendations")
    op.drop_index("ix_tracking_recommendations_scan_id_status", table_name="tracking_recommendations")
    op.drop_index("ix_tracking_recommendations_scan_id", table_name="tracking_recommendations")
    op.drop_table("tracking_recommendations")

    op.drop_index("ix_trackings_status", table_name="trackings")
    op.drop_index("ix_trackings_tenant_id", table_name="trackings")
    op.drop_index("ix_trackings_customer_id", table_name="trackings")
    op.drop_table("trackings")

    op.drop_index("ix_scan_pages_scan_id_url", table_name="scan_pages")
    op.drop_index("ix_scan_pages_scan_id", table_name="scan_pages")
    op.drop_table("scan_pages")

    op.drop_index("ix_site_scans_status", table_name="site_scans")
    op.drop_index("ix_site_scans_tenant_id", table_name="site_scans")
    op.drop_index("ix_site_scans_customer_id", table_name="site_scans")
    op.drop_table("site_scans")

    op.drop_index("ix_customers_tenant_id", table_name="customers")
    op.drop_table("customers")
