from __future__ import annotations

from decimal import Context, Decimal

import pytest

from storefront.services.price_projector import (
    calculate_dual_prices,
    calculate_usd_price,
    calculate_ves_price,
    calculation_example,
    format_dual_price,
    format_price,
    project,
)
from tests.fakes import build_rate


@pytest.mark.parametrize("amount", [0, "0.01", 19.99, Decimal("1250000")])
def test_project_without_rate_is_usd_only(amount):
    price = project(amount, None)

    assert price.has_local is False
    assert price.bcv_amount is None
    assert price.black_market_amount is None
    assert price.bcv_display is None
    assert price.black_market_display is None
    assert price.text == f"{price.usd_display} $"


def test_project_multiplies_by_both_rates():
    price = project(100, build_rate(40, 60))

    assert price.has_local is True
    assert price.bcv_amount == Decimal("4000.00")
    assert price.black_market_amount == Decimal("6000.00")
    assert price.bcv_display == "4,000.00"
    assert price.black_market_display == "6,000.00"
    assert price.usd_display == "100.00"
    assert price.text == "100.00 $ | 4,000.00 VES"


def test_project_rounds_up_to_the_cent():
    price = project("10.01", build_rate("36.555", "55.1"))

    # 10.01 * 36.555 = 365.91555
    assert price.bcv_amount == Decimal("365.92")
    # 10.01 * 55.1 = 551.551
    assert price.black_market_display == "551.56"


def test_project_groups_thousands():
    price = project("1234567.891", build_rate(1, 2))

    assert price.usd_display == "1,234,567.90"
    assert price.bcv_display == "1,234,567.90"
    assert price.black_market_display == "2,469,135.79"


def test_project_is_deterministic():
    rate = build_rate("36.5", "55.25")

    assert project("12.34", rate) == project("12.34", rate)


def test_project_rejects_negative_and_non_numeric_amounts():
    with pytest.raises(ValueError):
        project(-1, build_rate(40, 60))
    with pytest.raises(ValueError):
        project("ten", None)
    with pytest.raises(ValueError):
        project("NaN", None)


def test_project_to_dict_serializes_decimals_as_strings():
    payload = project(100, build_rate(40, 60)).to_dict()

    assert payload["amount_usd"] == "100"
    assert payload["bcv_amount"] == "4000.00"
    assert payload["black_market_amount"] == "6000.00"
    assert payload["has_local"] is True


def test_calculate_usd_price_applies_parallel_premium():
    # 10 * 55 / 36 = 15.2777...
    assert calculate_usd_price(10, 36, 55) == Decimal("15.28")


def test_calculate_ves_price_uses_bcv_rate():
    assert calculate_ves_price("15.28", 36) == Decimal("550.08")


@pytest.mark.parametrize("bcv, black", [(0, 55), (36, 0), (-1, 55)])
def test_calculate_usd_price_requires_positive_rates(bcv, black):
    with pytest.raises(ValueError):
        calculate_usd_price(10, bcv, black)


def test_calculate_dual_prices():
    usd, ves = calculate_dual_prices(10, build_rate(36, 55))

    assert usd == Decimal("15.28")
    assert ves == Decimal("550.08")


def test_format_helpers():
    assert format_price("1234.5", "usd") == "1,234.50 $"
    assert format_price(3000, "VES") == "3,000.00 VES"
    assert format_dual_price("14.58", 3000) == "14.58 $ | 3,000.00 VES"
    with pytest.raises(ValueError):
        format_price(1, "EUR")


def test_calculation_example_defaults_to_ten_dollars():
    example = calculation_example(build_rate(36, 55))

    assert example == {
        "reference_price": "10",
        "bcv_rate": "36",
        "black_market_rate": "55",
        "usd_price": "15.28",
        "ves_price": "550.08",
        "formatted_result": "15.28 $ | 550.08 VES",
    }


def test_project_handles_amounts_wider_than_the_default_precision():
    amount = Decimal("1e27")

    usd_only = project(amount, None)
    assert usd_only.amount_usd == amount
    assert usd_only.usd_display == "1" + ",000" * 9 + ".00"
    assert usd_only.text == f"{usd_only.usd_display} $"

    price = project(Decimal("1e25"), build_rate(40, 60))
    assert price.bcv_amount == Decimal("4e26")
    assert price.black_market_amount == Decimal("6e26")
    assert price.bcv_display == "400" + ",000" * 8 + ".00"


def test_project_keeps_every_digit_of_large_products():
    amount = Decimal("12345678901234567890123456.78")
    exact = Context(prec=60).multiply(amount, Decimal("36.5"))

    price = project(amount, build_rate("36.5", 55))

    assert price.bcv_amount == exact
    assert str(price.bcv_amount).endswith(".47")
    assert price.usd_display == "12,345,678,901,234,567,890,123,456.78"
