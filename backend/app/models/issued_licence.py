from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Index, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

LEDGER_ACTIVE = "active"
LEDGER_EXPIRED = "expired"
LEDGER_CANCELED = "canceled"


class IssuedLicence(Base):
    """Uma linha por (pedido, UF) liberado; usada na validação de conflitos por placa."""

    __tablename__ = "issued_licences"

    __table_args__ = (
        UniqueConstraint("request_id", "state", name="uq_issued_licences_request_state"),
        UniqueConstraint("permit_number", name="uq_issued_licences_permit_number"),
        Index("ix_issued_licences_state_status", "state", "status"),
        Index("ix_issued_licences_valid_until", "valid_until"),
        Index("ix_issued_licences_tractor_plate", "tractor_plate"),
        Index("ix_issued_licences_first_trailer_plate", "first_trailer_plate"),
        Index("ix_issued_licences_second_trailer_plate", "second_trailer_plate"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    request_id: Mapped[int] = mapped_column(
        ForeignKey("licence_requests.id", ondelete="CASCADE"), nullable=False
    )
    state: Mapped[str] = mapped_column(String(8), nullable=False)
    permit_number: Mapped[str] = mapped_column(String(64), nullable=False)
    issued_at: Mapped[date] = mapped_column(Date, nullable=False)
    valid_until: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=LEDGER_ACTIVE)

    tractor_plate: Mapped[str | None] = mapped_column(String(10), nullable=True)
    first_trailer_plate: Mapped[str | None] = mapped_column(String(10), nullable=True)
    second_trailer_plate: Mapped[str | None] = mapped_column(String(10), nullable=True)
    dolly_plate: Mapped[str | None] = mapped_column(String(10), nullable=True)
    flatbed_plate: Mapped[str | None] = mapped_column(String(10), nullable=True)
    trailer_plate: Mapped[str | None] = mapped_column(String(10), nullable=True)
    selected_cnpj: Mapped[str | None] = mapped_column(String(18), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    request: Mapped["LicenceRequest"] = relationship("LicenceRequest", back_populates="issued_licences")
