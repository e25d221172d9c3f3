"""create licence requests, status histories and issued licences

Revision ID: 20261019_0003
Revises: 20261019_0002
Create Date: 2026-10-19 00:03:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_0003"
down_revision: Union[str, None] = "20261019_0002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "licence_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("request_number", sa.String(length=32), nullable=False, unique=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("transporter_id", sa.Integer(), sa.ForeignKey("transporters.id"), nullable=True),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("main_vehicle_plate", sa.String(length=10), nullable=False),
        sa.Column("tractor_unit_id", sa.Integer(), sa.ForeignKey("vehicles.id"), nullable=True),
        sa.Column("first_trailer_id", sa.Integer(), sa.ForeignKey("vehicles.id"), nullable=True),
        sa.Column("second_trailer_id", sa.Integer(), sa.ForeignKey("vehicles.id"), nullable=True),
        sa.Column("dolly_id", sa.Integer(), sa.ForeignKey("vehicles.id"), nullable=True),
        sa.Column("flatbed_id", sa.Integer(), sa.ForeignKey("vehicles.id"), nullable=True),
        sa.Column("additional_plates", sa.JSON(), nullable=False),
        sa.Column("length", sa.Integer(), nullable=False),
        sa.Column("width", sa.Integer(), nullable=False),
        sa.Column("height", sa.Integer(), nullable=False),
        sa.Column("cargo_type", sa.String(length=32), nullable=False),
        sa.Column("states", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending_registration"),
        sa.Column("state_statuses", sa.JSON(), nullable=False),
        sa.Column("state_files", sa.JSON(), nullable=False),
        sa.Column("state_aet_numbers", sa.JSON(), nullable=False),
        sa.Column("state_cnpjs", sa.JSON(), nullable=False),
        sa.Column("is_draft", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_licence_requests_user_id", "licence_requests", ["user_id"])
    op.create_index("ix_licence_requests_transporter_id", "licence_requests", ["transporter_id"])
    op.create_index("ix_licence_requests_is_draft", "licence_requests", ["is_draft"])

    op.create_table(
        "status_histories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "request_id",
            sa.Integer(),
            sa.ForeignKey("licence_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("state", sa.String(length=8), nullable=False),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("old_status", sa.String(length=32), nullable=False),
        sa.Column("new_status", sa.String(length=32), nullable=False),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_status_histories_request_state", "status_histories", ["request_id", "state"])

    op.create_table(
        "issued_licences",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "request_id",
            sa.Integer(),
            sa.ForeignKey("licence_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("state", sa.String(length=8), nullable=False),
        sa.Column("permit_number", sa.String(length=64), nullable=False),
        sa.Column("issued_at", sa.Date(), nullable=False),
        sa.Column("valid_until", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("tractor_plate", sa.String(length=10), nullable=True),
        sa.Column("first_trailer_plate", sa.String(length=10), nullable=True),
        sa.Column("second_trailer_plate", sa.String(length=10), nullable=True),
        sa.Column("dolly_plate", sa.String(length=10), nullable=True),
        sa.Column("flatbed_plate", sa.String(length=10), nullable=True),
        sa.Column("trailer_plate", sa.String(length=10), nullable=True),
        sa.Column("selected_cnpj", sa.String(length=18), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("request_id", "state", name="uq_issued_licences_request_state"),
        sa.UniqueConstraint("permit_number", name="uq_issued_licences_permit_number"),
    )
    op.create_index("ix_issued_licences_state_status", "issued_licences", ["state", "status"])
    op.create_index("ix_issued_licences_valid_until", "issued_licences", ["valid_until"])
    op.create_index("ix_issued_licences_tractor_plate", "issued_licences", ["tractor_plate"])
    op.create_index("ix_issued_licences_first_trailer_plate", "issued_licences", ["first_trailer_plate"])
    op.create_index("ix_issued_licences_second_trailer_plate", "issued_licences", ["second_trailer_plate"])


def downgrade() -> None:
    op.drop_table("issued_licences")
    op.drop_table("status_histories")
    op.drop_table("licence_requests")
