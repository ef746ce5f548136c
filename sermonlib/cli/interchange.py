"""
Interchange Commands
--------------------

CSV import and export.

Commands:
    - import-csv: Import sermons from a CSV file
    - export-csv: Export the catalog to a CSV file

Usage:
    # Import; rows sharing a title become one sermon with several occasions
    sermondb import-csv sermons.csv

    # Export one row per sermon
    sermondb export-csv backup/sermons.csv
"""
import click
from pathlib import Path

from sermonlib.core.logging_manager import handle_cli_error
from sermonlib.core.exceptions import CatalogError
from . import get_session


@click.command("import-csv")
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_csv(ctx, csv_path):
    """Import sermons from a CSV file."""
    try:
        click.echo(f"📥 Importing: {csv_path}")
        session = get_session(ctx)
        result = session.import_csv(Path(csv_path))

        click.echo(
            f"✅ Imported {len(result.sermons)} sermons "
            f"({result.instance_count} preaching occasions)"
        )
        for warning in result.warnings:
            click.echo(f"⚠️  Row {warning.row_number}: {warning.message}")
        for skipped in result.skipped:
            click.echo(f"⏭️  Skipped row {skipped.row_number}: {skipped}")

    except (CatalogError, OSError) as e:
        handle_cli_error(ctx, e, "import_csv", additional_context={"path": csv_path})


@click.command("export-csv")
@click.argument("csv_path", type=click.Path(dir_okay=False))
@click.pass_context
def export_csv(ctx, csv_path):
    """Export the catalog to a CSV file."""
    try:
        session = get_session(ctx)
        count = session.export_csv(Path(csv_path))
        click.echo(f"✅ Exported {count} sermons to {csv_path}")

    except CatalogError as e:
        handle_cli_error(ctx, e, "export_csv", additional_context={"path": csv_path})
