# Overview: Flask CLI command groups for bootstrap and analytics maintenance.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to stockroom (PowerShell: $env:FLASK_APP="stockroom").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Analytics maintenance:
# - python -m flask analytics rollup [--date 2026-01-31]
#   Recompute the daily snapshot for one UTC date (default: today).
# - python -m flask analytics backfill --days 30
#   Recompute the snapshots for the last N UTC dates.
# - python -m flask analytics reorder
#   Print reorder suggestions for low-stock products.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import forecast_service, reporting_service
from .validation import ValidationError
from .time_utils import utcnow


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables ready.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('analytics')
def analytics_group():
    """Daily rollup and reorder commands."""


@analytics_group.command('rollup')
@click.option('--date', 'date_key', default=None, help='UTC date YYYY-MM-DD (default: today)')
@with_appcontext
def rollup(date_key):
    """Recompute one daily snapshot."""
    date_key = date_key or utcnow().date().isoformat()
    try:
        row = reporting_service.daily_rollup(date_key)
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint="--date")

    click.echo(
        f"PASS {row.date}: sales={row.total_sales_cents / 100:,.2f} "
        f"profit={row.total_profit_cents / 100:,.2f} transactions={row.total_transactions}"
    )


@analytics_group.command('backfill')
@click.option('--days', type=click.IntRange(1, 366), default=30, show_default=True,
              help='Number of UTC dates ending today')
@with_appcontext
def backfill(days):
    """Recompute the snapshots for the last N days."""
    rows = reporting_service.backfill_rollups(days)
    for row in rows:
        click.echo(f"{row.date}  {row.total_sales_cents / 100:>12,.2f}  {row.total_transactions:>5}")
    click.echo(f"PASS Rolled up {len(rows)} day(s).")


@analytics_group.command('reorder')
@with_appcontext
def reorder():
    """Print reorder suggestions, most urgent first."""
    suggestions = forecast_service.reorder_suggestions()
    if not suggestions:
        click.echo("No products need reordering.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'SKU':<16} {'Name':<28} {'Stock':>6} {'Avg/day':>8} {'Order':>6}  {'Urgency'}")
    click.echo("="*80)
    for s in suggestions:
        click.echo(
            f"{s['sku']:<16} {s['product_name'][:28]:<28} {s['current_stock']:>6} "
            f"{s['avg_daily_sales']:>8.2f} {s['suggested_reorder_quantity']:>6}  {s['urgency']}"
        )
    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(analytics_group)
