# Overview: Flask CLI command groups for bootstrap, inspection, and reports.

# backend/tillbook/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create tables and reconcile inventory with the menu catalog (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Inspection:
# - python -m flask inventory list [--category "Handbags"]
#   List inventory records with quantity, price and last change.
# - python -m flask log show [--date 2026-10-19]
#   Print one day of the audit log in insertion order.
#
# Payroll:
# - python -m flask payroll report [--date 2026-10-19]
#   Hours per worker for the current and previous pay periods.

from datetime import datetime, time

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import sales_service
from .services.audit_log_service import AuditLog
from .services.timekeeping_service import payroll_summary
from .time_utils import parse_iso_date, utcnow


def _parse_date_option(value):
    try:
        return parse_iso_date(value)
    except ValueError:
        raise click.BadParameter("expected YYYY-MM-DD")


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize tillbook: create tables and reconcile inventory.

    Every tracked catalog item without a record gets one at the default
    quantity and price. Records the catalog no longer reaches are removed.
    """
    click.echo("START Initializing tillbook...")
    db.create_all()
    click.echo("PASS Tables ready")

    sales_service.reset_session()
    session = sales_service.current_session()
    click.echo(f"PASS Inventory reconciled: {len(session.inventory)} tracked items")
    click.echo(f"PASS Open layaways: {len(session.layaways)}")
    click.echo(f"PASS Catalog categories: {', '.join(session.catalog.categories)}")


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
    sales_service.reset_session()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('inventory')
def inventory_group():
    """Inventory inspection commands."""


@inventory_group.command('list')
@click.option('--category', default=None, help='Only this category')
@with_appcontext
def list_inventory(category):
    """List inventory records."""
    session = sales_service.current_session()
    records = [r for r in session.inventory if not category or r.category == category]
    if not records:
        click.echo("No inventory records found.")
        return

    for record in records:
        click.echo(
            f"{record.item_code:<22} {record.category} / {record.brand} / {record.item}"
            f"  qty={record.quantity}  price=${record.price}  last={record.last_change}"
        )
    click.echo(f"\n{len(records)} records")


@click.group('log')
def log_group():
    """Audit log inspection commands."""


@log_group.command('show')
@click.option('--date', 'day', default=None, help='Day to show (YYYY-MM-DD), default today')
@with_appcontext
def show_log(day):
    """Print one day of the audit log."""
    day = _parse_date_option(day) or utcnow().date()
    entries = AuditLog().entries_for_day(day)
    if not entries:
        click.echo(f"No log entries for {day.isoformat()}.")
        return

    for entry in entries:
        click.echo(
            f"{entry.timestamp:%H:%M:%S}  {entry.action:<32} {entry.item_code:<22} "
            f"{entry.category} / {entry.brand} / {entry.item}  "
            f"qty {entry.quantity_change} -> {entry.new_quantity}  "
            f"${entry.price_sold}  {entry.discount_applied}"
        )
    click.echo(f"\n{len(entries)} entries on {day.isoformat()}")


@click.group('payroll')
def payroll_group():
    """Payroll reports."""


@payroll_group.command('report')
@click.option('--date', 'day', default=None, help='Report as of this day (YYYY-MM-DD), default today')
@with_appcontext
def payroll_report(day):
    """Hours per worker for the current and previous pay periods."""
    day = _parse_date_option(day)
    now = datetime.combine(day, time(23, 59, 59)) if day else utcnow()

    for report in payroll_summary(now):
        click.echo(f"\n{report.period.title}")
        click.echo("-" * 40)
        if not report.workers:
            click.echo("  No punches")
            continue
        for worker in report.workers:
            click.echo(f"  {worker.worker:<24} {worker.hours:>8} h  ({worker.shifts} shifts)")
        click.echo(f"  {'Total':<24} {report.total_hours:>8} h")
    current_app.logger.debug("Payroll report printed for %s", now.date())


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(inventory_group)
    app.cli.add_command(log_group)
    app.cli.add_command(payroll_group)
