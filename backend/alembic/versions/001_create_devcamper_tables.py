"""Create users, bootcamps, courses and reviews tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

Mirrors app/models/*. UUID primary keys are generated by the application
(uuid4), so no server-side default is required.

Rollback: downgrade() drops all four tables (destructive — all data lost).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, comment="Login identifier, stored lower-cased"),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("password", sa.String(255), nullable=False, comment="bcrypt hash"),
        sa.Column("reset_password_token", sa.String(64), nullable=True),
        sa.Column("reset_password_expire", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "bootcamps",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("slug", sa.String(80), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("website", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("formatted_address", sa.String(255), nullable=True),
        sa.Column("street", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("zipcode", sa.String(20), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("careers", sa.JSON(), nullable=False),
        sa.Column("average_rating", sa.Float(), nullable=True),
        sa.Column("average_cost", sa.Float(), nullable=True),
        sa.Column("photo", sa.String(255), nullable=False, server_default="no-photo.jpg"),
        sa.Column("housing", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("job_assistance", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("job_guarantee", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("accept_gi", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        # Owner id for non-admin owners, NULL for admins: one bootcamp per publisher
        sa.Column("exclusive_owner_id", sa.Uuid(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sa.UniqueConstraint("exclusive_owner_id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_bootcamps_slug", "bootcamps", ["slug"])
    op.create_index("ix_bootcamps_user_id", "bootcamps", ["user_id"])
    op.create_index("idx_bootcamps_lat_lng", "bootcamps", ["latitude", "longitude"])

    op.create_table(
        "courses",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("weeks", sa.Integer(), nullable=False),
        sa.Column("tuition", sa.Float(), nullable=False),
        sa.Column("minimum_skill", sa.String(20), nullable=False),
        sa.Column("scholarship_available", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.Column("bootcamp_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["bootcamp_id"], ["bootcamps.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_courses_bootcamp_id", "courses", ["bootcamp_id"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        _created_at(),
        sa.Column("bootcamp_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["bootcamp_id"], ["bootcamps.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("bootcamp_id", "user_id", name="uq_reviews_bootcamp_user"),
        sa.CheckConstraint("rating BETWEEN 1 AND 10", name="ck_reviews_rating_range"),
    )
    op.create_index("ix_reviews_bootcamp_id", "reviews", ["bootcamp_id"])


def downgrade() -> None:
    op.drop_index("ix_reviews_bootcamp_id", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("ix_courses_bootcamp_id", table_name="courses")
    op.drop_table("courses")
    op.drop_index("idx_bootcamps_lat_lng", table_name="bootcamps")
    op.drop_index("ix_bootcamps_user_id", table_name="bootcamps")
    op.drop_index("ix_bootcamps_slug", table_name="bootcamps")
    op.drop_table("bootcamps")
    op.drop_table("users")
