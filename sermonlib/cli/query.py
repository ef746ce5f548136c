"""
Query & Browse Commands
------------------------

Catalog browsing commands.

Commands:
    - list: List sermons (one row per sermon, or per occasion in details mode)
    - show: Display one sermon with its preaching history
    - series: List series with their member sermons
    - delete: Delete a sermon (orphaned series are pruned)
"""
import sys
from dataclasses import replace

import click

from sermonlib.core.logging_manager import handle_cli_error
from sermonlib.core.exceptions import CatalogError
from sermonlib.views.filters import SEARCH_FIELDS, FilterOptions, column_value
from sermonlib.views.modes import ColumnSort, SortDirection, SortKey, ViewMode
from . import get_session


@click.command("list")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in ViewMode]),
    default=None,
    help="View mode (details lists every preaching occasion)",
)
@click.option(
    "--sort-by",
    type=click.Choice([k.value for k in SortKey]),
    default=None,
    help="Sort field",
)
@click.option(
    "--order",
    type=click.Choice(["asc", "desc"]),
    default=None,
    help="Sort order",
)
@click.option("--column", default=None, help="Sort by a table column instead")
@click.option("--search", default="", help="Free-text search")
@click.option(
    "--field",
    "search_field",
    type=click.Choice(list(SEARCH_FIELDS)),
    default="all",
    help="Field the search applies to",
)
@click.option("--series", "series_title", default=None, help="Only this series")
@click.option("--tag", "tags", multiple=True, help="Only sermons with any of these tags")
@click.option("--place", default=None, help="Only this place")
@click.pass_context
def list_sermons(ctx, mode, sort_by, order, column, search, search_field, series_title, tags, place):
    """List sermons."""
    try:
        session = get_session(ctx)

        settings = session.view_settings
        if mode:
            settings = replace(settings, view_mode=ViewMode(mode))
        if sort_by:
            settings = replace(settings, sort_by=SortKey(sort_by))
        if order:
            settings = replace(settings, sort_order=SortDirection(order))
        session.view_settings = settings

        session.filters = FilterOptions(
            search_term=search,
            search_field=search_field,
            series=series_title,
            place=place,
            tags=tuple(tags),
        )
        if column:
            session.column_sort = ColumnSort(column, SortDirection(order or "asc"))

        rows = session.rows()
        if not rows:
            click.echo("No sermons found")
            return

        if settings.view_mode is ViewMode.DETAILS:
            columns = sorted(
                (c for c in session.column_config if c.visible), key=lambda c: c.order
            )
            click.echo(" | ".join(c.label for c in columns))
            click.echo("-" * 70)
            for row in rows:
                click.echo(" | ".join(column_value(row, c.key) for c in columns))
        else:
            for row in rows:
                series_label = f" [{row.series}]" if row.series else ""
                click.echo(f"• {row.date.isoformat()}  {row.title}{series_label}")
                click.echo(
                    f"    {row.place or '-'} · preached "
                    f"{row.sermon.preaching_count}x · id {row.sermon_id}"
                )

        click.echo(f"\nTotal: {len(rows)}")

    except CatalogError as e:
        handle_cli_error(ctx, e, "list")


@click.command()
@click.argument("sermon_id")
@click.pass_context
def show(ctx, sermon_id):
    """Display a sermon with its preaching history."""
    try:
        session = get_session(ctx)
        sermon = session.store.get_sermon(sermon_id)
        if sermon is None:
            click.echo(f"❌ No sermon found with id {sermon_id}", err=True)
            sys.exit(1)

        click.echo(f"\n📖 {sermon.title}")
        click.echo(f"📅 First preached: {sermon.first_preached.isoformat()}")
        click.echo(f"📅 Last preached: {sermon.last_preached.isoformat()}")
        if sermon.series:
            click.echo(f"📚 Series: {sermon.series}")
        if sermon.type:
            click.echo(f"🏷️  Type: {sermon.type}")
        if sermon.references:
            click.echo(f"📜 Scripture: {', '.join(sermon.references)}")
        if sermon.tags:
            click.echo(f"🔖 Tags: {', '.join(sermon.tags)}")
        if sermon.summary:
            click.echo(f"\n{sermon.summary}")

        click.echo(f"\n🗓️  Preaching history ({len(sermon.preaching_history)}):")
        for instance in sorted(sermon.preaching_history, key=lambda i: i.date):
            audience = f" ({instance.audience})" if instance.audience else ""
            click.echo(f"  • {instance.date.isoformat()} at {instance.location}{audience}")

    except CatalogError as e:
        handle_cli_error(ctx, e, "show", additional_context={"sermon_id": sermon_id})


@click.command()
@click.pass_context
def series(ctx):
    """List series and their sermons."""
    try:
        session = get_session(ctx)
        all_series = session.store.series

        if not all_series:
            click.echo("No series found")
            return

        for item in all_series:
            members = session.store.series_sermons(item)
            click.echo(f"\n📚 {item.title} ({len(members)} sermons)")
            if item.description:
                click.echo(f"   {item.description}")
            for sermon in sorted(members, key=lambda s: (s.series_order or 0, s.date)):
                click.echo(f"  • {sermon.date.isoformat()}  {sermon.title}")

    except CatalogError as e:
        handle_cli_error(ctx, e, "series")


@click.command()
@click.argument("sermon_id")
@click.pass_context
def delete(ctx, sermon_id):
    """Delete a sermon by id."""
    try:
        session = get_session(ctx)
        sermon = session.store.get_sermon(sermon_id)
        if sermon is None or not session.store.delete_sermon(sermon_id):
            click.echo(f"❌ No sermon found with id {sermon_id}", err=True)
            sys.exit(1)

        click.echo(f"🗑️  Deleted: {sermon.title}")

    except CatalogError as e:
        handle_cli_error(ctx, e, "delete", additional_context={"sermon_id": sermon_id})
