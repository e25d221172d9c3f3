from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, func, JSON
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Transporter(Base):
    __tablename__ = "transporters"

    __table_args__ = (Index("ix_transporters_user_id", "user_id"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"), nullable=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    trade_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    person_type: Mapped[str] = mapped_column(String(2), nullable=False)  # pf / pj
    document_number: Mapped[str] = mapped_column(String(18), unique=True, nullable=False)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(2), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    # [{"name": ..., "document_number": ..., "city": ..., "state": ...}]
    subsidiaries: Mapped[list | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def tax_ids(self) -> set[str]:
        ids = {self.document_number}
        for subsidiary in self.subsidiaries or []:
            document = (subsidiary or {}).get("document_number")
            if document:
                ids.add(document)
        return ids
