"""create boletos

Revision ID: 20261019_0004
Revises: 20261019_0003
Create Date: 2026-10-19 00:04:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_0004"
down_revision: Union[str, None] = "20261019_0003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "boletos",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("transporter_id", sa.Integer(), sa.ForeignKey("transporters.id"), nullable=False),
        sa.Column(
            "request_id",
            sa.Integer(),
            sa.ForeignKey("licence_requests.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("transporter_name", sa.String(length=255), nullable=False),
        sa.Column("cpf_cnpj", sa.String(length=14), nullable=False),
        sa.Column("boleto_number", sa.String(length=64), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="aguardando_pagamento"),
        sa.Column("boleto_url", sa.String(length=512), nullable=True),
        sa.Column("invoice_url", sa.String(length=512), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_boletos_transporter_id", "boletos", ["transporter_id"])
    op.create_index("ix_boletos_status", "boletos", ["status"])


def downgrade() -> None:
    op.drop_index("ix_boletos_status", table_name="boletos")
    op.drop_index("ix_boletos_transporter_id", table_name="boletos")
    op.drop_table("boletos")
