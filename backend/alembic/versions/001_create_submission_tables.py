"""Create submission tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates `locations`, `profiles` and `join_requests`.
How:   Portable column types (sa.Uuid renders as UUID on PostgreSQL); ids and
       timestamps are generated by the application, not by server defaults.

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _image_columns():
    return [
        sa.Column("image_path", sa.String(255), nullable=False,
                  comment="Relative blob address under STORAGE_ROOT"),
        sa.Column("image_mimetype", sa.String(50), nullable=False,
                  comment="MIME type detected from the image bytes"),
    ]


def _review_columns():
    return [
        sa.Column("status", sa.String(20), nullable=False,
                  server_default=sa.text("'pending'"),
                  comment="pending, approved or rejected; only pending may change"),
        sa.Column("submitted_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("processed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("processed_by", sa.String(100), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
    ]


def _applicant_columns():
    return [
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "locations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("link", sa.String(2048), nullable=False),
        *_image_columns(),
        *_review_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_locations_status_submitted", "locations", ["status", "submitted_at"])
    op.create_index("idx_locations_processed_at", "locations", ["processed_at"])

    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_applicant_columns(),
        *_image_columns(),
        *_review_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_profiles_status_submitted", "profiles", ["status", "submitted_at"])
    op.create_index("idx_profiles_processed_at", "profiles", ["processed_at"])

    op.create_table(
        "join_requests",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("location_id", sa.Uuid(), nullable=False),
        *_applicant_columns(),
        *_image_columns(),
        sa.Column("joined_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"]),
    )
    op.create_index("idx_join_requests_location_id", "join_requests", ["location_id"])
    op.create_index("idx_join_requests_joined_at", "join_requests", ["joined_at"])


def downgrade() -> None:
    op.drop_index("idx_join_requests_joined_at", table_name="join_requests")
    op.drop_index("idx_join_requests_location_id", table_name="join_requests")
    op.drop_table("join_requests")

    op.drop_index("idx_profiles_processed_at", table_name="profiles")
    op.drop_index("idx_profiles_status_submitted", table_name="profiles")
    op.drop_table("profiles")

    op.drop_index("idx_locations_processed_at", table_name="locations")
    op.drop_index("idx_locations_status_submitted", table_name="locations")
    op.drop_table("locations")
