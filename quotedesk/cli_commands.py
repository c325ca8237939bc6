"""
Flask CLI commands.

Commands:
- flask init-db: Create database tables
- flask price-check: Show base/final price and realized margin for given inputs
"""

import click

from quotedesk.database import create_all
from quotedesk.services.margin_resolver import (
    DEFAULT_MARGIN_PERCENT, base_price, final_price, realized_margin,
    resolve_discount, check_margin_floor,
)
from quotedesk.utils.money import format_percent, to_decimal


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables."""
        create_all()
        click.echo(click.style('Database tables created.', fg='green'))

    @app.cli.command('price-check')
    @click.option('--cost', required=True, help='Cost price')
    @click.option('--margin', default=str(DEFAULT_MARGIN_PERCENT), show_default=True, help='Margin percent')
    @click.option('--discount', default='0', show_default=True, help='Client discount percent')
    @click.option('--max-discount', default=None, help='Discount ceiling percent (default 15)')
    @click.option('--min-margin', default=None, help='Margin floor percent (default 10)')
    def price_check(cost, margin, discount, max_discount, min_margin):
        """Price a product the way an offer line would be priced."""
        try:
            cost_value = to_decimal(cost)
            margin_value = to_decimal(margin)
            discount_value = to_decimal(discount)
            max_discount_value = to_decimal(max_discount) if max_discount is not None else None
            min_margin_value = to_decimal(min_margin) if min_margin is not None else None
        except ValueError as e:
            raise click.BadParameter(str(e))

        resolution = resolve_discount(discount_value, max_discount_value)
        if not resolution.accepted:
            click.echo(click.style(
                f'Discount rejected: maximum discount is {format_percent(resolution.max_discount)}%',
                fg='red'))
            raise SystemExit(1)

        base = base_price(cost_value, margin_value)
        final = final_price(base, resolution.effective_discount)
        margin_realized = realized_margin(final, cost_value)
        floor = check_margin_floor(margin_realized, min_margin_value)

        click.echo(f'Base price:      {base}')
        click.echo(f'Final price:     {final}')
        click.echo(f'Realized margin: {margin_realized}%')
        if floor.below_floor:
            click.echo(click.style(
                f'Warning: margin below minimum {format_percent(floor.min_margin)}%', fg='yellow'))
