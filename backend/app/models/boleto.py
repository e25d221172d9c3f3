from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Index, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Boleto(Base):
    __tablename__ = "boletos"

    __table_args__ = (
        Index("ix_boletos_transporter_id", "transporter_id"),
        Index("ix_boletos_status", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    transporter_id: Mapped[int] = mapped_column(ForeignKey("transporters.id"), nullable=False)
    request_id: Mapped[int | None] = mapped_column(
        ForeignKey("licence_requests.id", ondelete="SET NULL"), nullable=True
    )

    transporter_name: Mapped[str] = mapped_column(String(255), nullable=False)
    cpf_cnpj: Mapped[str] = mapped_column(String(14), nullable=False)
    boleto_number: Mapped[str] = mapped_column(String(64), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    # aguardando_pagamento / pago / vencido
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="aguardando_pagamento")
    boleto_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    invoice_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
