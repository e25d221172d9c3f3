from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    __table_args__ = (
        Index("ix_vehicles_user_id", "user_id"),
        Index("ix_vehicles_transporter_id", "transporter_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"), nullable=True)
    transporter_id: Mapped[int | None] = mapped_column(ForeignKey("transporters.id"), nullable=True)

    plate: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)
    # tractor_unit / semi_trailer / dolly / flatbed / truck
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    brand: Mapped[str | None] = mapped_column(String(64), nullable=True)
    model: Mapped[str | None] = mapped_column(String(64), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    renavam: Mapped[str | None] = mapped_column(String(16), nullable=True)
    axle_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tare: Mapped[int | None] = mapped_column(Integer, nullable=True)
    body_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ownership_type: Mapped[str] = mapped_column(String(16), nullable=False, default="proprio")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
    crlv_url: Mapped[str | None] = mapped_column(String(512), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
