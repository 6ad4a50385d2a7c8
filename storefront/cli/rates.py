"""CLI commands for managing the active exchange rate."""

from __future__ import annotations

import click
from flask import current_app
from flask.cli import with_appcontext

from storefront.services.price_projector import calculation_example
from storefront.services.rate_admin import (
    RateValidationError,
    activate_exchange_rate,
    list_exchange_rate_history,
)
from storefront.services.synchronizer import get_synchronizer


@click.group("rates")
def rates_group() -> None:
    """Manage storefront exchange rates."""


@rates_group.command("set")
@click.option("--bcv", "bcv_rate", required=True, help="Official BCV rate (VES per USD).")
@click.option("--black-market", "black_market_rate", required=True, help="Parallel market rate.")
@click.option("--updated-by", default=None, help="Identifier of the admin making the change.")
@with_appcontext
def set_rate(bcv_rate: str, black_market_rate: str, updated_by: str | None) -> None:
    """Store a new active rate, deactivating the previous one."""

    try:
        rate = activate_exchange_rate(bcv_rate, black_market_rate, updated_by=updated_by)
    except RateValidationError as exc:
        raise click.BadParameter(exc.message, param_hint=exc.field) from exc

    example = calculation_example(rate)
    click.echo(
        f"Activated rate id={rate.id}: BCV {rate.bcv_rate}, black market {rate.black_market_rate}. "
        f"Example: {example['reference_price']} -> {example['formatted_result']}"
    )


@rates_group.command("history")
@click.option("--limit", default=10, show_default=True, type=click.IntRange(min=1))
@with_appcontext
def history(limit: int) -> None:
    """List the most recent rates, newest first."""

    rates = list_exchange_rate_history(limit=limit)
    if not rates:
        click.echo("No exchange rates stored.")
        return
    for rate in rates:
        marker = "*" if rate.is_active else " "
        click.echo(
            f"{marker} {rate.id:>5}  {rate.updated_at.isoformat()}  "
            f"BCV {rate.bcv_rate}  black market {rate.black_market_rate}"
        )


@rates_group.command("refresh")
@with_appcontext
def refresh() -> None:
    """Run one synchronizer refresh and print what it did."""

    synchronizer = get_synchronizer(current_app)
    if synchronizer is None:
        raise click.ClickException("Rate synchronizer is not configured.")
    outcome = synchronizer.refresh()
    click.echo(f"Refresh {outcome.status}" + (f": {outcome.error}" if outcome.error else ""))
    rate = synchronizer.cache.read()
    if rate is None:
        click.echo("No active rate cached; prices display in USD only.")
    else:
        click.echo(f"Cached rate: BCV {rate.bcv_rate}, black market {rate.black_market_rate}")
