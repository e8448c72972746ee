"""leftoff CLI - remember where you left off."""

import json
import logging
import sys
from pathlib import Path

import click

from .adapters.json_store import StoreError
from .config import load_config
from .core.backup import BackupFormatError
from .core.pointer import parse_location
from .core.records import (
    MARKER_TYPES,
    Marker,
    active_markers,
    archived_markers,
    archived_rhythms,
    due_rhythms,
    search,
)
from .core.schedule import (
    DAY_NAMES,
    Custom,
    Daily,
    Monthly,
    Schedule,
    ScheduleError,
    Weekly,
    format_relative_date,
    format_schedule,
)
from . import workflows
from .workflows import InvalidEdit, NotAdvanceable, RecordNotFound

logger = logging.getLogger(__name__)

ERRORS = (RecordNotFound, NotAdvanceable, InvalidEdit, ScheduleError, BackupFormatError, StoreError)


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


def _store(ctx: click.Context):
    return ctx.obj["store"]


def _short(record_id: str) -> str:
    return record_id[:8]


def _marker_line(marker) -> str:
    pin = "*" if marker.pinned else " "
    pointer = f" @ {marker.pointer}" if marker.pointer else ""
    return f"{pin} {_short(marker.id):8} {marker.title}{pointer}"


def _rhythm_line(rhythm) -> str:
    when = format_relative_date(rhythm.next_occurrence)
    return f"  {_short(rhythm.id):8} {rhythm.title} ({format_schedule(rhythm.schedule)}, next: {when})"


@click.group()
@click.version_option(package_name="leftoff")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, debug: bool):
    """leftoff - remember where you left off."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )

    if ctx.obj is None:
        config = load_config()
        store = workflows.get_store(config)
        try:
            workflows.ensure_seeded(store, config)
        except ERRORS as e:
            _fail(e)
        ctx.obj = {"config": config, "store": store}


# ============== Markers ==============


@main.command()
@click.argument("text", nargs=-1, required=True)
@click.option("--type", "marker_type", type=click.Choice(MARKER_TYPES), default="other", help="Marker type")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.option("--group", default=None, help="Group or meeting this marker belongs to")
@click.pass_context
def add(ctx, text: tuple[str, ...], marker_type: str, tags: tuple[str, ...], group: str | None):
    """Add a marker, e.g. 'Mere Christianity page 94 next: underline quote'."""
    try:
        marker = workflows.add_marker(_store(ctx), " ".join(text), marker_type, list(tags), group)
    except ERRORS as e:
        _fail(e)
    click.echo(f"Added {_short(marker.id)}: {marker.title}")
    if marker.pointer:
        click.echo(f"  Pointer: {marker.pointer}")
    if marker.next_step:
        click.echo(f"  Next: {marker.next_step}")


def _tags_option(tags: tuple[str, ...], clear_tags: bool) -> list[str] | None:
    if clear_tags:
        return []
    return list(tags) if tags else None


@main.command()
@click.argument("ref")
@click.option("--title", default=None, help="New title")
@click.option("--next", "next_step", default=None, help="Next step ('' clears it)")
@click.option("--type", "marker_type", type=click.Choice(MARKER_TYPES), default=None, help="Marker type")
@click.option("--tag", "tags", multiple=True, help="Replace tags (repeatable)")
@click.option("--clear-tags", is_flag=True, help="Remove all tags")
@click.option("--group", default=None, help="Group or meeting ('' clears it)")
@click.option("--note", "meeting_note", default=None, help="Meeting note ('' clears it)")
@click.pass_context
def edit(ctx, ref, title, next_step, marker_type, tags, clear_tags, group, meeting_note):
    """Edit a marker's details. Use 'advance --to' for the pointer."""
    try:
        marker = workflows.update_marker(
            _store(ctx),
            ref,
            title=title,
            next_step=next_step,
            marker_type=marker_type,
            tags=_tags_option(tags, clear_tags),
            group=group,
            meeting_note=meeting_note,
        )
    except ERRORS as e:
        _fail(e)
    click.echo(f"Updated {_short(marker.id)}: {marker.title}")


@main.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def list_markers(ctx, as_json: bool):
    """List active markers, pinned first."""
    try:
        markers = active_markers(_store(ctx).all_markers())
    except ERRORS as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps([m.to_dict() for m in markers], indent=2))
        return

    if not markers:
        click.echo("No markers yet. Add one with 'leftoff add'.")
        return

    for marker in markers:
        click.echo(_marker_line(marker))
        if marker.next_step:
            click.echo(f"           Next: {marker.next_step}")


@main.command()
@click.argument("ref")
@click.pass_context
def show(ctx, ref: str):
    """Show a marker or rhythm in detail."""
    try:
        record = workflows.find_record(_store(ctx), ref)
    except ERRORS as e:
        _fail(e)

    click.echo(f"{record.title}  ({record.id})")
    if isinstance(record, Marker):
        parsed = parse_location(record.pointer)
        click.echo(f"  Type: {record.type}")
        click.echo(f"  Pointer: {record.pointer or '-'}")
        if parsed.kind is None:
            click.echo("  Advance: manual edit only")
        else:
            click.echo(f"  Advance: by {parsed.kind}")
        if record.next_step:
            click.echo(f"  Next: {record.next_step}")
        if record.group:
            click.echo(f"  Group: {record.group}")
        if record.meeting_note:
            click.echo(f"  Note: {record.meeting_note}")
        click.echo(f"  Last touched: {format_relative_date(record.last_touched)}")
    else:
        click.echo(f"  Schedule: {format_schedule(record.schedule)}")
        click.echo(f"  Next: {format_relative_date(record.next_occurrence)}")
        if record.last_completed:
            click.echo(f"  Last completed: {format_relative_date(record.last_completed)}")
        click.echo(f"  Notifications: {'on' if record.notification_enabled else 'off'}")
    if record.tags:
        click.echo(f"  Tags: {', '.join(record.tags)}")
    if record.archived:
        click.echo("  (archived)")


@main.command()
@click.argument("ref")
@click.option("--by", "amount", type=int, default=1, help="Units to move (seconds for timestamps)")
@click.option("--to", "pointer", default=None, help="Set the pointer by hand instead")
@click.pass_context
def advance(ctx, ref: str, amount: int, pointer: str | None):
    """Advance a marker's pointer."""
    try:
        if pointer is not None:
            marker = workflows.update_pointer(_store(ctx), ref, pointer)
        else:
            marker = workflows.advance(_store(ctx), ref, amount)
    except NotAdvanceable as e:
        click.echo(f"Error: {e}", err=True)
        click.echo("Use --to to set the pointer by hand.", err=True)
        sys.exit(1)
    except ERRORS as e:
        _fail(e)

    click.echo(f"{marker.title} @ {marker.pointer}")


@main.command()
@click.argument("ref")
@click.pass_context
def pin(ctx, ref: str):
    """Pin or unpin a marker."""
    try:
        marker = workflows.toggle_pin(_store(ctx), ref)
    except ERRORS as e:
        _fail(e)
    click.echo(f"{'Pinned' if marker.pinned else 'Unpinned'} {marker.title}")


@main.command("archive")
@click.argument("ref")
@click.pass_context
def archive_cmd(ctx, ref: str):
    """Archive a marker or rhythm."""
    try:
        record = workflows.archive(_store(ctx), ref)
    except ERRORS as e:
        _fail(e)
    click.echo(f"Archived {record.title}. Run 'leftoff undo' to revert.")


@main.command("restore")
@click.argument("ref")
@click.pass_context
def restore_cmd(ctx, ref: str):
    """Restore an archived marker or rhythm."""
    try:
        record = workflows.restore(_store(ctx), ref)
    except ERRORS as e:
        _fail(e)
    click.echo(f"Restored {record.title}.")


@main.command("delete")
@click.argument("ref")
@click.pass_context
def delete_cmd(ctx, ref: str):
    """Delete a marker or rhythm permanently."""
    try:
        record = workflows.delete(_store(ctx), ref)
    except ERRORS as e:
        _fail(e)
    click.echo(f"Deleted {record.title}. Run 'leftoff undo' to revert.")


@main.command("archived")
@click.pass_context
def archived_cmd(ctx):
    """List archived markers and rhythms."""
    store = _store(ctx)
    try:
        markers = archived_markers(store.all_markers())
        rhythms = archived_rhythms(store.all_rhythms())
    except ERRORS as e:
        _fail(e)

    if not markers and not rhythms:
        click.echo("Archive is empty.")
        return

    if markers:
        click.echo("Markers:")
        for marker in markers:
            click.echo(_marker_line(marker))
    if rhythms:
        if markers:
            click.echo()
        click.echo("Rhythms:")
        for rhythm in rhythms:
            click.echo(_rhythm_line(rhythm))


@main.command("search")
@click.argument("query", default="")
@click.option("--type", "marker_type", type=click.Choice(MARKER_TYPES), default=None, help="Only markers of this type")
@click.option("--pinned", "pinned_only", is_flag=True, help="Only pinned markers")
@click.pass_context
def search_cmd(ctx, query: str, marker_type: str | None, pinned_only: bool):
    """Search markers and rhythms by title, pointer, next step or tag."""
    store = _store(ctx)
    try:
        markers, rhythms = search(store.all_markers(), store.all_rhythms(), query, marker_type, pinned_only)
    except ERRORS as e:
        _fail(e)

    if not markers and not rhythms:
        click.echo("No results.")
        return

    click.echo(f"{len(markers) + len(rhythms)} result(s)")
    for marker in markers:
        click.echo(_marker_line(marker))
    for rhythm in rhythms:
        click.echo(_rhythm_line(rhythm))


# ============== Rhythms ==============


def _parse_days(value: str) -> tuple[int, ...]:
    """Parse 'mon,thu' or '1,4' into weekday indices (0=Sunday)."""
    days = []
    for part in value.split(","):
        part = part.strip().lower()
        if not part:
            continue
        if part.isdigit() and 0 <= int(part) <= 6:
            days.append(int(part))
            continue
        for index, name in enumerate(DAY_NAMES):
            if len(part) >= 3 and name.lower().startswith(part):
                days.append(index)
                break
        else:
            raise click.BadParameter(f"Unknown day '{part}'", param_hint="--weekly")
    if not days:
        raise click.BadParameter("At least one day is required", param_hint="--weekly")
    return tuple(dict.fromkeys(days))


def _schedule_option(daily, weekly, monthly, every, required: bool = True) -> Schedule | None:
    """The schedule chosen with --daily/--weekly/--monthly/--every."""
    chosen = [opt for opt in (daily, weekly, monthly, every) if opt]
    if not chosen and not required:
        return None
    if len(chosen) != 1:
        raise click.UsageError("Choose exactly one of --daily, --weekly, --monthly, --every")

    if daily:
        return Daily()
    if weekly:
        return Weekly(_parse_days(weekly))
    if monthly:
        return Monthly(monthly)
    return Custom(every)


def schedule_options(f):
    f = click.option("--every", type=click.IntRange(min=1), default=None, help="Every N days")(f)
    f = click.option("--monthly", type=click.IntRange(1, 31), default=None, help="Day of month")(f)
    f = click.option("--weekly", default=None, help="Days of week, e.g. 'mon,thu'")(f)
    f = click.option("--daily", is_flag=True, help="Every day")(f)
    return f


@main.group()
def rhythm():
    """Manage recurring rhythms."""


@rhythm.command("add")
@click.argument("title", nargs=-1, required=True)
@schedule_options
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.option("--quiet", is_flag=True, help="Disable reminders for this rhythm")
@click.pass_context
def rhythm_add(ctx, title, daily, weekly, monthly, every, tags, quiet):
    """Add a rhythm, e.g. 'leftoff rhythm add Call Mom --weekly sun,wed'."""
    schedule = _schedule_option(daily, weekly, monthly, every)

    try:
        created = workflows.add_rhythm(_store(ctx), " ".join(title), schedule, list(tags), not quiet)
    except ERRORS as e:
        _fail(e)
    click.echo(f"Added {_short(created.id)}: {created.title}")
    click.echo(f"  {format_schedule(created.schedule)}, next: {format_relative_date(created.next_occurrence)}")


@rhythm.command("edit")
@click.argument("ref")
@click.option("--title", default=None, help="New title")
@schedule_options
@click.option("--tag", "tags", multiple=True, help="Replace tags (repeatable)")
@click.option("--clear-tags", is_flag=True, help="Remove all tags")
@click.option("--notify/--quiet", "notify", default=None, help="Turn reminders on or off")
@click.pass_context
def rhythm_edit(ctx, ref, title, daily, weekly, monthly, every, tags, clear_tags, notify):
    """Edit a rhythm. A new schedule restarts from today."""
    schedule = _schedule_option(daily, weekly, monthly, every, required=False)

    try:
        updated = workflows.update_rhythm(
            _store(ctx),
            ref,
            title=title,
            schedule=schedule,
            tags=_tags_option(tags, clear_tags),
            notification_enabled=notify,
        )
    except ERRORS as e:
        _fail(e)
    click.echo(f"Updated {_short(updated.id)}: {updated.title}")
    click.echo(f"  {format_schedule(updated.schedule)}, next: {format_relative_date(updated.next_occurrence)}")


@rhythm.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def rhythm_list(ctx, as_json: bool):
    """List active rhythms by next occurrence."""
    try:
        rhythms = sorted(
            (r for r in _store(ctx).all_rhythms() if not r.archived),
            key=lambda r: r.next_occurrence,
        )
    except ERRORS as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in rhythms], indent=2))
        return

    if not rhythms:
        click.echo("No rhythms yet. Add one with 'leftoff rhythm add'.")
        return

    for r in rhythms:
        click.echo(_rhythm_line(r))


@rhythm.command("today")
@click.pass_context
def rhythm_today(ctx):
    """Rhythms due today (or overdue)."""
    try:
        due = due_rhythms(_store(ctx).all_rhythms())
    except ERRORS as e:
        _fail(e)
    if not due:
        click.echo("Nothing due today.")
        return
    for r in due:
        click.echo(_rhythm_line(r))


@rhythm.command("done")
@click.argument("ref")
@click.pass_context
def rhythm_done(ctx, ref: str):
    """Mark a rhythm done and schedule the next occurrence."""
    try:
        updated = workflows.mark_done(_store(ctx), ref)
    except ERRORS as e:
        _fail(e)
    click.echo(f"Done: {updated.title}. Next: {format_relative_date(updated.next_occurrence)}")


# ============== Undo / Backup ==============


@main.command()
@click.pass_context
def undo(ctx):
    """Undo the most recent change."""
    try:
        action = workflows.undo_last(_store(ctx))
    except ERRORS as e:
        _fail(e)
    if action is None:
        click.echo("Nothing to undo.")
        return
    click.echo(f"Undone: {action.description}")


@main.command("export")
@click.argument("path", type=click.Path(path_type=Path), required=False)
@click.pass_context
def export_cmd(ctx, path: Path | None):
    """Export all data to a JSON backup file."""
    config = ctx.obj["config"]
    try:
        output = workflows.export_backup(_store(ctx), path or config.backup_path)
    except ERRORS as e:
        _fail(e)
    click.echo(f"Backup saved to {output}")


@main.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--preview", is_flag=True, help="Show what would change without importing")
@click.option("--yes", is_flag=True, help="Import without confirmation")
@click.pass_context
def import_cmd(ctx, path: Path, preview: bool, yes: bool):
    """Import a JSON backup, merging it into existing data."""
    store = _store(ctx)
    try:
        summary = workflows.preview_backup(store, path)
    except ERRORS as e:
        _fail(e)

    click.echo(f"New: {summary.new_markers} markers, {summary.new_rhythms} rhythms")
    click.echo(f"Updated: {summary.updated_markers} markers, {summary.updated_rhythms} rhythms")
    for conflict in summary.conflicts:
        click.echo(f"  ! {conflict.item_type} '{conflict.title}': {conflict.reason}")

    if preview:
        return
    if not yes and not click.confirm("Import this backup?"):
        return

    try:
        workflows.import_backup(store, path)
    except ERRORS as e:
        _fail(e)
    click.echo("Import complete. Run 'leftoff undo' to revert.")


@main.command()
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def clear(ctx, yes: bool):
    """Delete all markers and rhythms. Export first to keep a backup."""
    if not yes and not click.confirm("Delete ALL markers and rhythms?"):
        return
    try:
        workflows.clear_all(_store(ctx))
    except ERRORS as e:
        _fail(e)
    click.echo("All data cleared.")


@main.command()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def bot(debug: bool):
    """Run the Telegram bot."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )

    try:
        from .telegram_bot import run_bot
        click.echo("Starting leftoff Telegram bot...")
        click.echo("Press Ctrl+C to stop")
        run_bot()
    except ImportError as e:
        click.echo("Error: Missing dependencies. Run 'pip install python-telegram-bot apscheduler'", err=True)
        click.echo(f"Details: {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nBot stopped.")


if __name__ == "__main__":
    main()
