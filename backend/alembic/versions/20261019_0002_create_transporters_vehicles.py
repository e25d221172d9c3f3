"""create transporters and vehicles

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:02:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_0002"
down_revision: Union[str, None] = "20261019_0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "transporters",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("trade_name", sa.String(length=255), nullable=True),
        sa.Column("person_type", sa.String(length=2), nullable=False),
        sa.Column("document_number", sa.String(length=18), nullable=False, unique=True),
        sa.Column("city", sa.String(length=128), nullable=True),
        sa.Column("state", sa.String(length=2), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("subsidiaries", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_transporters_user_id", "transporters", ["user_id"])

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("transporter_id", sa.Integer(), sa.ForeignKey("transporters.id"), nullable=True),
        sa.Column("plate", sa.String(length=10), nullable=False, unique=True),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("brand", sa.String(length=64), nullable=True),
        sa.Column("model", sa.String(length=64), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("renavam", sa.String(length=16), nullable=True),
        sa.Column("axle_count", sa.Integer(), nullable=True),
        sa.Column("tare", sa.Integer(), nullable=True),
        sa.Column("body_type", sa.String(length=64), nullable=True),
        sa.Column("ownership_type", sa.String(length=16), nullable=False, server_default="proprio"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("crlv_url", sa.String(length=512), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_vehicles_user_id", "vehicles", ["user_id"])
    op.create_index("ix_vehicles_transporter_id", "vehicles", ["transporter_id"])


def downgrade() -> None:
    op.drop_index("ix_vehicles_transporter_id", table_name="vehicles")
    op.drop_index("ix_vehicles_user_id", table_name="vehicles")
    op.drop_table("vehicles")
    op.drop_index("ix_transporters_user_id", table_name="transporters")
    op.drop_table("transporters")
