"""Normalized exchange rate value shared by every rate source."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from storefront.utils.datetime import ensure_utc, parse_timestamp

from .base import MalformedRateError

REQUIRED_FIELDS = ("bcv_rate", "black_market_rate", "is_active", "updated_at")


def _to_rate(value: Decimal | float | int | str) -> Decimal:
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Exchange rate must be numeric, got {value!r}") from exc
    if not rate.is_finite() or rate <= 0:
        raise ValueError(f"Exchange rate must be a positive number, got {value!r}")
    return rate


def _canonical(value: Decimal) -> str:
    return format(value.normalize(), "f")


@dataclass(frozen=True)
class ExchangeRate:
    """Snapshot of the BCV and black market rates for one USD."""

    bcv_rate: Decimal
    black_market_rate: Decimal
    is_active: bool
    updated_at: datetime
    id: int | None = None
    created_at: datetime | None = None
    updated_by: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "bcv_rate", _to_rate(self.bcv_rate))
        object.__setattr__(self, "black_market_rate", _to_rate(self.black_market_rate))
        if not isinstance(self.is_active, bool):
            raise ValueError(f"is_active must be a boolean, got {self.is_active!r}")
        object.__setattr__(self, "updated_at", ensure_utc(self.updated_at))
        if self.created_at is not None:
            object.__setattr__(self, "created_at", ensure_utc(self.created_at))

    @property
    def signature(self) -> str:
        """Comparison key over the numeric rates; timestamps are ignored."""

        return f"{_canonical(self.bcv_rate)}:{_canonical(self.black_market_rate)}"

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> ExchangeRate:
        """Build a rate from a raw record, raising MalformedRateError on bad data."""

        if not isinstance(payload, Mapping):
            raise MalformedRateError(f"Exchange rate record must be a mapping, got {type(payload).__name__}")

        missing = [name for name in REQUIRED_FIELDS if payload.get(name) is None]
        if missing:
            raise MalformedRateError(
                f"Exchange rate record is missing fields: {', '.join(missing)}"
            )

        try:
            created_raw = payload.get("created_at")
            return cls(
                bcv_rate=payload["bcv_rate"],
                black_market_rate=payload["black_market_rate"],
                is_active=payload["is_active"],
                updated_at=parse_timestamp(payload["updated_at"]),
                id=int(payload["id"]) if payload.get("id") is not None else None,
                created_at=parse_timestamp(created_raw) if created_raw is not None else None,
                updated_by=payload.get("updated_by"),
            )
        except (TypeError, ValueError) as exc:
            raise MalformedRateError(f"Invalid exchange rate record: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "bcv_rate": str(self.bcv_rate),
            "black_market_rate": str(self.black_market_rate),
            "is_active": self.is_active,
            "updated_at": self.updated_at.isoformat(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_by": self.updated_by,
            "signature": self.signature,
        }


def rate_signature(rate: ExchangeRate | None) -> str | None:
    """Return the change-detection key for a rate, or None when absent."""

    if rate is None:
        return None
    return rate.signature
