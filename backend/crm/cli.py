# Overview: Flask CLI command groups for schema bootstrap and backups.

# backend/crm/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "crm:create_app".
# - Use: python -m flask <group> <command> [options]
#
# Schema:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Backups:
# - python -m flask backup export [--output backup.json]
#   Write a snapshot of every table (stdout by default).
# - python -m flask backup import backup.json
#   Merge a snapshot into the database and print per-entity stats.
# - python -m flask backup clear --yes
#   Delete all rows from every table.

import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import backup_service
from .services.backup_service import BackupError


@click.group('system')
def system_group():
    """Schema bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """Drop and recreate all tables."""
    if not yes:
        raise click.UsageError("Refusing to reset without --yes")
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('backup')
def backup_group():
    """Snapshot export, import and clear."""


@backup_group.command('export')
@click.option('--output', '-o', type=click.File('w', encoding='utf-8'), default='-', help='Destination file (default: stdout)')
@with_appcontext
def export_backup(output):
    snapshot = backup_service.export_snapshot(
        version=current_app.config.get("BACKUP_FORMAT_VERSION"),
    )
    json.dump(snapshot, output, indent=2, ensure_ascii=False)
    output.write("\n")


@backup_group.command('import')
@click.argument('source', type=click.File('r', encoding='utf-8'))
@click.option('--policy', type=click.Choice(sorted(backup_service.RECEIPT_POLICIES)), default=None,
              help='Receipt aggregate policy (default: RECEIPT_IMPORT_POLICY)')
@with_appcontext
def import_backup(source, policy):
    try:
        payload = json.load(source)
    except ValueError as exc:
        raise click.ClickException(f"Invalid JSON: {exc}")

    # Accept the raw snapshot or the {success, data} export envelope
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict) and "success" in payload:
        payload = payload["data"]

    try:
        stats = backup_service.import_snapshot(
            payload,
            receipt_policy=policy or current_app.config.get("RECEIPT_IMPORT_POLICY", "increment"),
        )
    except BackupError as exc:
        raise click.ClickException(str(exc))

    click.echo("PASS Backup imported")
    for name, counts in stats.items():
        click.echo(
            f"  {name:<20} imported={counts['imported']} "
            f"skipped={counts['skipped']} errors={counts['errors']}"
        )


@backup_group.command('clear')
@click.option('--yes', is_flag=True, help='Confirm deleting all data')
@with_appcontext
def clear_backup(yes):
    if not yes:
        raise click.UsageError("Refusing to clear without --yes")
    deleted = backup_service.clear_all()
    click.echo(f"PASS All data cleared ({sum(deleted.values())} rows)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(backup_group)
