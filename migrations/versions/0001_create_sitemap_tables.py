"""Create stored sitemap and sitemap settings tables.

Revision ID: 0001_create_sitemap_tables
Revises:
Create Date: 2026-10-17 09:00:00

"""
from __future__ import annotations

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

revision: str = "0001_create_sitemap_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "stored_sitemaps",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("xml", sa.Text(), nullable=False),
        sa.Column("url_count", sa.Integer(), nullable=False),
        sa.Column("file_size_bytes", sa.Integer(), nullable=False),
        sa.Column(
            "generated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_stored_sitemaps"),
    )
    op.create_index(
        "ix_stored_sitemaps_generated_at",
        "stored_sitemaps",
        ["generated_at"],
    )

    op.create_table(
        "stored_sitemap_urls",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("sitemap_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("loc", sa.String(length=4096), nullable=False),
        sa.Column("lastmod", sa.String(length=32), nullable=True),
        sa.Column("changefreq", sa.String(length=16), nullable=True),
        sa.Column("priority", sa.Float(), nullable=True),
        sa.Column("extensions", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(
            ["sitemap_id"],
            ["stored_sitemaps.id"],
            name="fk_stored_sitemap_urls_sitemap_id_stored_sitemaps",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_stored_sitemap_urls"),
        sa.UniqueConstraint(
            "sitemap_id",
            "position",
            name="uq_stored_sitemap_urls_sitemap_id_position",
        ),
    )
    op.create_index(
        "ix_stored_sitemap_urls_sitemap_id",
        "stored_sitemap_urls",
        ["sitemap_id"],
    )

    op.create_table(
        "sitemap_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_sitemap_settings"),
    )


def downgrade() -> None:
    op.drop_table("sitemap_settings")
    op.drop_index("ix_stored_sitemap_urls_sitemap_id", table_name="stored_sitemap_urls")
    op.drop_table("stored_sitemap_urls")
    op.drop_index("ix_stored_sitemaps_generated_at", table_name="stored_sitemaps")
    op.drop_table("stored_sitemaps")
