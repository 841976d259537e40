"""Initial marketplace schema.

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 00:00:00.000000

This migration:
1. Creates the users and profiles tables
2. Creates the admins and admin_activity_logs tables
3. Creates the products, wishlist and product_reports tables
4. Creates the system_settings table (rows are seeded by scripts/bootstrap.py)
"""
from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

# Enum columns store member names
SETTING_TYPE = sa.Enum("BOOLEAN", "NUMBER", "JSON", "STRING", name="settingtype")
ADMIN_ROLE = sa.Enum("SUPER_ADMIN", "ADMIN", "MODERATOR", name="adminrole")
PRODUCT_CONDITION = sa.Enum("LIKE_NEW", "GOOD", "WELL_USED", name="productcondition")
REPORT_REASON = sa.Enum(
    "SPAM", "INAPPROPRIATE", "FRAUD", "DUPLICATE", "OTHER", name="reportreason"
)
REPORT_STATUS = sa.Enum("PENDING", "REVIEWED", "RESOLVED", "DISMISSED", name="reportstatus")


def upgrade() -> None:
    """Create all marketplace tables."""
    # 1. Students
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("email_verified", sa.Boolean(), nullable=True),
        sa.Column("is_suspended", sa.Boolean(), nullable=True),
        sa.Column("suspended_at", sa.DateTime(), nullable=True),
        sa.Column("suspension_reason", sa.Text(), nullable=True),
        sa.Column("last_sign_in", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("college", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("avatar_url", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )

    # 2. Admin console
    op.create_table(
        "admins",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("role", ADMIN_ROLE, nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "admin_activity_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "admin_id",
            sa.String(36),
            sa.ForeignKey("admins.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=True),
        sa.Column("entity_id", sa.String(36), nullable=True),
        sa.Column("details_json", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_admin_activity_logs_created_at", "admin_activity_logs", ["created_at"])
    op.create_index("ix_admin_activity_logs_action", "admin_activity_logs", ["action"])
    op.create_index("ix_admin_activity_logs_entity_type", "admin_activity_logs", ["entity_type"])

    # 3. Listings
    op.create_table(
        "products",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("condition", PRODUCT_CONDITION, nullable=True),
        sa.Column("negotiable", sa.Boolean(), nullable=True),
        sa.Column("college", sa.String(255), nullable=True),
        sa.Column("images_json", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("is_flagged", sa.Boolean(), nullable=True),
        sa.Column("flagged_at", sa.DateTime(), nullable=True),
        sa.Column("flag_reason", sa.Text(), nullable=True),
        sa.Column("view_count", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_products_active_created", "products", ["is_active", "created_at"])
    op.create_index("ix_products_user_id", "products", ["user_id"])
    op.create_index("ix_products_category", "products", ["category"])

    op.create_table(
        "wishlist",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "product_id",
            sa.String(36),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("user_id", "product_id", name="uq_wishlist_user_product"),
    )

    op.create_table(
        "product_reports",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "product_id",
            sa.String(36),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "reporter_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("reason", REPORT_REASON, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", REPORT_STATUS, nullable=True),
        sa.Column(
            "reviewed_by",
            sa.String(36),
            sa.ForeignKey("admins.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_product_reports_status", "product_reports", ["status"])
    op.create_index(
        "ix_product_reports_product_reporter", "product_reports", ["product_id", "reporter_id"]
    )

    # 4. Runtime settings and feature flags
    op.create_table(
        "system_settings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("key", sa.String(100), nullable=False, unique=True),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("type", SETTING_TYPE, nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "updated_by",
            sa.String(36),
            sa.ForeignKey("admins.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )


def downgrade() -> None:
    """Drop all marketplace tables."""
    op.drop_table("system_settings")
    op.drop_index("ix_product_reports_product_reporter", table_name="product_reports")
    op.drop_index("ix_product_reports_status", table_name="product_reports")
    op.drop_table("product_reports")
    op.drop_table("wishlist")
    op.drop_index("ix_products_category", table_name="products")
    op.drop_index("ix_products_user_id", table_name="products")
    op.drop_index("ix_products_active_created", table_name="products")
    op.drop_table("products")
    op.drop_index("ix_admin_activity_logs_entity_type", table_name="admin_activity_logs")
    op.drop_index("ix_admin_activity_logs_action", table_name="admin_activity_logs")
    op.drop_index("ix_admin_activity_logs_created_at", table_name="admin_activity_logs")
    op.drop_table("admin_activity_logs")
    op.drop_table("admins")
    op.drop_table("profiles")
    op.drop_table("users")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum_type in (
            REPORT_STATUS,
            REPORT_REASON,
            PRODUCT_CONDITION,
            ADMIN_ROLE,
            SETTING_TYPE,
        ):
            enum_type.drop(bind, checkfirst=True)
