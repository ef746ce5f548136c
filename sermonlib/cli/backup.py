"""
Backup & Restore Commands
--------------------------

Snapshot backup and restore operations.

Commands:
    - backup: Write a full snapshot (with embedded images)
    - backups: List all backups
    - restore: Replace the catalog from a snapshot
    - auto-backup: Take an auto-backup as on shutdown, with cleanup

Usage:
    # Create a timestamped manual backup in the backup directory
    sermondb backup

    # Write a backup to a specific file
    sermondb backup ~/Desktop/library.slb

    # Restore from a specific backup file
    sermondb restore /path/to/SermonLibrary_AutoBackup_2025-01-05T10-00-00-000Z.slb
"""
import click
from pathlib import Path

from sermonlib.core.cli_utils import format_size
from sermonlib.core.logging_manager import handle_cli_error
from sermonlib.core.exceptions import BackupError, CatalogError
from . import get_session


@click.command()
@click.argument("backup_path", type=click.Path(dir_okay=False), required=False)
@click.pass_context
def backup(ctx, backup_path):
    """Create a snapshot backup."""
    try:
        click.echo("💾 Creating backup...")
        session = get_session(ctx)
        path = session.backup(Path(backup_path) if backup_path else None)
        click.echo(f"✅ Backup created: {path}")

    except CatalogError as e:
        handle_cli_error(
            ctx, e, "backup", additional_context={"backup_path": backup_path}
        )


@click.command()
@click.pass_context
def backups(ctx):
    """List all available backups."""
    try:
        session = get_session(ctx)
        backup_list = session.backups.list_backups() if session.backups else []

        click.echo("\n📦 Available Backups")
        click.echo("=" * 70)

        if not backup_list:
            click.echo("\n  No backups found")
            return

        for item in backup_list:
            click.echo(f"  • {item['name']} [{item['type']}]")
            click.echo(f"    Created: {item['created']}")
            click.echo(f"    Sermons: {item['sermons']}")
            click.echo(f"    Size: {format_size(item['size'])}")
            click.echo(f"    Age: {item['age_days']} days")

        click.echo(f"\nTotal backups: {len(backup_list)}")

        best = session.backups.select_best()
        if best is not None:
            click.echo(f"Best auto-backup: {best.name}")

    except CatalogError as e:
        handle_cli_error(ctx, e, "backups")


@click.command()
@click.argument("backup_path", type=click.Path(exists=True, dir_okay=False))
@click.confirmation_option(
    prompt="⚠️  This will replace the whole catalog! Continue?"
)
@click.pass_context
def restore(ctx, backup_path):
    """Restore the catalog from a backup file."""
    try:
        click.echo(f"♻️  Restoring from: {backup_path}")
        session = get_session(ctx)
        report = session.restore(Path(backup_path))
        click.echo(
            f"✅ Restored {report.sermons} sermons and {report.series} series"
        )
        if report.images_restored or report.images_failed:
            click.echo(
                f"🖼️  Images restored: {report.images_restored}, "
                f"failed: {report.images_failed}"
            )

    except CatalogError as e:
        handle_cli_error(
            ctx, e, "restore", additional_context={"backup_path": backup_path}
        )


@click.command("auto-backup")
@click.pass_context
def auto_backup(ctx):
    """Take an auto-backup and remove expired ones."""
    try:
        session = get_session(ctx)
        if session.backups is None:
            raise BackupError("No backup location configured")

        path = session.backups.backup_on_close(
            session.snapshot, timeout=session.settings.backup_timeout_seconds
        )
        if path is None:
            raise BackupError("Auto-backup failed or timed out (see logs)")
        click.echo(f"✅ Auto-backup created: {path}")

    except CatalogError as e:
        handle_cli_error(ctx, e, "auto_backup")
