"""Currency commands."""

from typing import Optional

import click

from flowledger.api import currency as currency_api
from flowledger.cli.colors import console, print_error, print_table
from flowledger.cli.context import CliContext, pass_context
from flowledger.stores.currency import CurrencyCache


@click.command()
@click.argument("amount")
@click.argument("from_currency")
@click.argument("to_currency")
@click.option("--date", default=None, help="Rate date (YYYY-MM-DD), defaults to latest")
@pass_context
def convert(ctx: CliContext, amount: str, from_currency: str, to_currency: str, date: Optional[str]):
    """Convert an amount between currencies.

    Examples:
        flowledger convert 100 USD CNY
        flowledger convert 12.5 EUR USD --date 2024-01-31
    """
    res = ctx.run(
        lambda client: currency_api.convert_currency(
            client, amount, from_currency.upper(), to_currency.upper(), date=date
        )
    )
    console.print(
        f"{res['amount']} {res['from_currency']} = [highlight]{res['converted']} {res['to_currency']}[/highlight]"
        f" [dim](rate {res['rate']}, effective {res['effective_date']})[/dim]"
    )


@click.command()
@pass_context
def currencies(ctx: CliContext):
    """List all currencies."""
    session = ctx.session
    if not session.is_authenticated:
        print_error("Not signed in - run 'flowledger login' first.")
        raise SystemExit(1)

    async def load(client):
        cache = CurrencyCache(client, session)
        await cache.fetch(force=True)
        return cache

    cache = ctx.run(load)
    if cache.error:
        print_error(f"Could not load currencies: {cache.error}")
        raise SystemExit(1)
    print_table(
        ["Code", "Name", "Symbol", "Scale"],
        [[c.get("code"), c.get("name"), c.get("symbol"), c.get("scale")] for c in cache.items],
    )
