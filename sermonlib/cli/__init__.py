#!/usr/bin/env python3
"""
Sermon Library CLI
------------------

Modular command-line interface for the sermon catalog.

This module provides the main CLI group and shared context setup
for all catalog commands.

Command Structure:
    - Interchange (import-csv, export-csv)
    - Query & Browse (list, show, series, delete)
    - Backup & Restore (backup, backups, restore, auto-backup)

Usage:
    # Get general help
    sermondb --help

    # Import a spreadsheet export
    sermondb import-csv sermons.csv

    # Browse every preaching occasion, oldest first
    sermondb list --mode details --sort-by date --order asc
"""
import click
from pathlib import Path

from sermonlib.catalog.session import CatalogSession
from sermonlib.core.cli_utils import setup_logger
from sermonlib.core.config import Settings
from sermonlib.core.paths import BACKUP_DIR, DATA_DIR, LOG_DIR, SETTINGS_PATH


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(),
    default=str(DATA_DIR),
    help="Directory holding the catalog database and images",
)
@click.option(
    "--log-dir",
    type=click.Path(),
    default=str(LOG_DIR),
    help="Path to log directory",
)
@click.option(
    "--backup-dir",
    type=click.Path(),
    default=None,
    help="Backup directory (overrides the configured backup location)",
)
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(),
    default=str(SETTINGS_PATH),
    help="Path to settings file",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Show detailed errors and tracebacks",
)
@click.pass_context
def cli(ctx, data_dir, log_dir, backup_dir, settings_path, verbose):
    """Sermon Library catalog CLI"""
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = Path(data_dir)
    ctx.obj["log_dir"] = Path(log_dir)
    ctx.obj["settings_path"] = Path(settings_path)
    ctx.obj["verbose"] = verbose

    logger = setup_logger(Path(log_dir), "sermondb")
    ctx.obj["logger"] = logger
    ctx.call_on_close(logger.close)

    settings = Settings.load(Path(settings_path), logger=logger.area("session"))
    if backup_dir:
        settings.default_backup_location = Path(backup_dir)
    elif settings.default_backup_location is None:
        settings.default_backup_location = BACKUP_DIR
    ctx.obj["settings"] = settings


def get_session(ctx) -> CatalogSession:
    """
    Get or open the catalog session from context.

    The session is closed (pending writes flushed, no auto-backup) when
    the root context closes.
    """
    if "session" not in ctx.obj:
        session = CatalogSession.open(
            ctx.obj["data_dir"],
            settings=ctx.obj["settings"],
            logger=ctx.obj["logger"],
        )
        ctx.obj["session"] = session
        ctx.find_root().call_on_close(lambda: session.close(backup=False))
    return ctx.obj["session"]


# Import and register command modules
# These imports must come after CLI group definition
from .interchange import export_csv, import_csv  # noqa: E402
from .query import delete, list_sermons, series, show  # noqa: E402
from .backup import auto_backup, backup, backups, restore  # noqa: E402

cli.add_command(import_csv)
cli.add_command(export_csv)
cli.add_command(list_sermons)
cli.add_command(show)
cli.add_command(series)
cli.add_command(delete)
cli.add_command(backup)
cli.add_command(backups)
cli.add_command(restore)
cli.add_command(auto_backup)


if __name__ == "__main__":
    cli(obj={})
