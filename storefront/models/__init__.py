"""SQLAlchemy ORM models for storefront exchange rates."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, Numeric, String, desc, false, func
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database import Base


class ExchangeRateRecord(Base):
    """Persisted BCV / black market rate pair; at most one row is active."""

    __tablename__ = "exchange_rates"
    __table_args__ = (
        Index("ix_exchange_rates_is_active", "is_active"),
        Index("ix_exchange_rates_created_at_desc", desc("created_at")),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    bcv_rate: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    black_market_rate: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    updated_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"<ExchangeRateRecord id={self.id} bcv={self.bcv_rate} "
            f"black={self.black_market_rate} active={self.is_active}>"
        )
