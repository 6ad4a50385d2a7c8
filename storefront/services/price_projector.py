"""Pure conversion of USD prices into display prices using an exchange rate.

Products are computed exactly and amounts of any size are rounded up to
the cent, which is the storefront's pricing rule, and rendered with en-US
grouping (``4,000.00``).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_HALF_EVEN, Decimal, InvalidOperation, getcontext, localcontext
from typing import Any

from storefront.sources.schemas import ExchangeRate

ROUNDING_PRECISION = 28
CENT = Decimal("0.01")
CURRENCY_SYMBOLS = {"USD": "$", "VES": "VES"}


def get_decimal_context():
    """Return the shared Decimal context used across price conversions."""

    context = getcontext().copy()
    context.prec = ROUNDING_PRECISION
    context.rounding = ROUND_HALF_EVEN
    return context


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert input into a Decimal using the shared context."""

    context = get_decimal_context()
    with localcontext(context):
        try:
            result = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"Amount must be numeric, got {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Amount must be finite, got {value!r}")
    return result


def _wide_context(digits: int):
    """Shared context with room for ``digits`` significant digits."""

    context = get_decimal_context()
    context.prec = max(ROUNDING_PRECISION, digits)
    return context


def _multiply(left: Decimal, right: Decimal) -> Decimal:
    """Exact product of two finite decimals."""

    digits = len(left.as_tuple().digits) + len(right.as_tuple().digits) + 2
    return _wide_context(digits).multiply(left, right)


def round_up_to_cent(value: Decimal) -> Decimal:
    # quantize needs precision for every integer digit plus the two cents.
    return value.quantize(CENT, rounding=ROUND_CEILING, context=_wide_context(value.adjusted() + 3))


def format_amount(value: Decimal) -> str:
    """Two decimals with thousands separators, e.g. ``1,234.50``."""

    return f"{round_up_to_cent(value):,.2f}"


def format_price(amount: Decimal | int | float | str, currency: str) -> str:
    """Render an amount followed by its currency symbol: ``1,234.50 $``."""

    code = currency.strip().upper()
    try:
        symbol = CURRENCY_SYMBOLS[code]
    except KeyError as exc:
        raise ValueError(f"Unsupported display currency '{currency}'") from exc
    return f"{format_amount(to_decimal(amount))} {symbol}"


def format_dual_price(usd_price: Decimal | int | float | str, ves_price: Decimal | int | float | str) -> str:
    """Render ``14.58 $ | 3,000.00 VES``."""

    return f"{format_price(usd_price, 'USD')} | {format_price(ves_price, 'VES')}"


@dataclass(frozen=True)
class DisplayPrice:
    """A USD price plus its local-currency projections, if a rate is known."""

    amount_usd: Decimal
    usd_display: str
    bcv_amount: Decimal | None = None
    black_market_amount: Decimal | None = None
    bcv_display: str | None = None
    black_market_display: str | None = None

    @property
    def has_local(self) -> bool:
        return self.bcv_amount is not None

    @property
    def text(self) -> str:
        usd = f"{self.usd_display} $"
        if self.bcv_display is None:
            return usd
        return f"{usd} | {self.bcv_display} VES"

    def to_dict(self) -> dict[str, Any]:
        return {
            "amount_usd": str(self.amount_usd),
            "usd_display": self.usd_display,
            "has_local": self.has_local,
            "bcv_amount": str(self.bcv_amount) if self.bcv_amount is not None else None,
            "black_market_amount": (
                str(self.black_market_amount) if self.black_market_amount is not None else None
            ),
            "bcv_display": self.bcv_display,
            "black_market_display": self.black_market_display,
            "text": self.text,
        }


def project(amount_usd: Decimal | int | float | str, rate: ExchangeRate | None) -> DisplayPrice:
    """Project a USD amount through ``rate``; USD only when ``rate`` is None."""

    amount = to_decimal(amount_usd)
    if amount < 0:
        raise ValueError("amount_usd must not be negative")

    usd_display = format_amount(amount)
    if rate is None:
        return DisplayPrice(amount_usd=amount, usd_display=usd_display)

    bcv_amount = round_up_to_cent(_multiply(amount, rate.bcv_rate))
    black_market_amount = round_up_to_cent(_multiply(amount, rate.black_market_rate))

    return DisplayPrice(
        amount_usd=amount,
        usd_display=usd_display,
        bcv_amount=bcv_amount,
        black_market_amount=black_market_amount,
        bcv_display=format_amount(bcv_amount),
        black_market_display=format_amount(black_market_amount),
    )


def calculate_usd_price(
    reference_price: Decimal | int | float | str,
    bcv_rate: Decimal | int | float | str,
    black_market_rate: Decimal | int | float | str,
) -> Decimal:
    """Selling price in USD: ``reference * black_market / bcv``, rounded up."""

    bcv = to_decimal(bcv_rate)
    black = to_decimal(black_market_rate)
    if bcv <= 0 or black <= 0:
        raise ValueError("Exchange rates must be positive")

    product = _multiply(to_decimal(reference_price), black)
    quotient = _wide_context(product.adjusted() + ROUNDING_PRECISION).divide(product, bcv)
    return round_up_to_cent(quotient)


def calculate_ves_price(
    usd_price: Decimal | int | float | str,
    bcv_rate: Decimal | int | float | str,
) -> Decimal:
    """Local price at the official rate: ``usd * bcv``, rounded up."""

    bcv = to_decimal(bcv_rate)
    if bcv <= 0:
        raise ValueError("BCV rate must be positive")

    return round_up_to_cent(_multiply(to_decimal(usd_price), bcv))


def calculate_dual_prices(
    reference_price: Decimal | int | float | str, rate: ExchangeRate
) -> tuple[Decimal, Decimal]:
    usd_price = calculate_usd_price(reference_price, rate.bcv_rate, rate.black_market_rate)
    return usd_price, calculate_ves_price(usd_price, rate.bcv_rate)


def calculation_example(
    rate: ExchangeRate, reference_price: Decimal | int | float | str = 10
) -> dict[str, Any]:
    """Worked example of the dual pricing formula for the admin settings page."""

    reference = to_decimal(reference_price)
    usd_price, ves_price = calculate_dual_prices(reference, rate)
    return {
        "reference_price": str(reference),
        "bcv_rate": str(rate.bcv_rate),
        "black_market_rate": str(rate.black_market_rate),
        "usd_price": str(usd_price),
        "ves_price": str(ves_price),
        "formatted_result": format_dual_price(usd_price, ves_price),
    }
