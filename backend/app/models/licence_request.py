from __future__ import annotations

from datetime import datetime
from typing import List

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, func, JSON, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class LicenceRequest(Base):
    """
    Pedido de AET para uma composição em um ou mais estados.

    O andamento de cada UF fica nas listas de tags ``state_statuses``,
    ``state_files``, ``state_aet_numbers`` e ``state_cnpjs`` (formato
    ``UF:valor``, ver app.services.licences.state_tags).
    """

    __tablename__ = "licence_requests"

    __table_args__ = (
        Index("ix_licence_requests_user_id", "user_id"),
        Index("ix_licence_requests_transporter_id", "transporter_id"),
        Index("ix_licence_requests_is_draft", "is_draft"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    request_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    transporter_id: Mapped[int | None] = mapped_column(ForeignKey("transporters.id"), nullable=True)

    type: Mapped[str] = mapped_column(String(32), nullable=False)
    main_vehicle_plate: Mapped[str] = mapped_column(String(10), nullable=False)
    tractor_unit_id: Mapped[int | None] = mapped_column(ForeignKey("vehicles.id"), nullable=True)
    first_trailer_id: Mapped[int | None] = mapped_column(ForeignKey("vehicles.id"), nullable=True)
    second_trailer_id: Mapped[int | None] = mapped_column(ForeignKey("vehicles.id"), nullable=True)
    dolly_id: Mapped[int | None] = mapped_column(ForeignKey("vehicles.id"), nullable=True)
    flatbed_id: Mapped[int | None] = mapped_column(ForeignKey("vehicles.id"), nullable=True)
    additional_plates: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # centímetros
    length: Mapped[int] = mapped_column(Integer, nullable=False)
    width: Mapped[int] = mapped_column(Integer, nullable=False)
    height: Mapped[int] = mapped_column(Integer, nullable=False)
    cargo_type: Mapped[str] = mapped_column(String(32), nullable=False)

    states: Mapped[list] = mapped_column(JSON, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, server_default="pending_registration", default="pending_registration"
    )
    state_statuses: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    state_files: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    state_aet_numbers: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    state_cnpjs: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    is_draft: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"), default=False)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    issued_licences: Mapped[List["IssuedLicence"]] = relationship(
        "IssuedLicence",
        back_populates="request",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    status_histories: Mapped[List["StatusHistory"]] = relationship(
        "StatusHistory",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="StatusHistory.created_at",
    )

    def vehicle_role_ids(self) -> dict[str, int | None]:
        return {
            "tractor": self.tractor_unit_id,
            "first_trailer": self.first_trailer_id,
            "second_trailer": self.second_trailer_id,
            "dolly": self.dolly_id,
            "flatbed": self.flatbed_id,
        }
