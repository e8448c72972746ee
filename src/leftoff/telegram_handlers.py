"""Telegram command handlers."""

import logging

from telegram import Update
from telegram.ext import ContextTypes

from . import workflows
from .adapters.json_store import StoreError
from .config import load_config
from .core.records import active_markers, due_rhythms
from .core.schedule import ScheduleError, format_relative_date
from .telegram_format import format_markers, format_rhythms, send_markdown
from .workflows import NotAdvanceable, RecordNotFound

logger = logging.getLogger(__name__)

HANDLED_ERRORS = (RecordNotFound, NotAdvanceable, ScheduleError, StoreError)


def _store():
    return workflows.get_store(load_config())


# ============== Simple Commands ==============


async def start_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /start command."""
    await update.message.reply_text(
        "Hey! I keep track of where you left off.\n\n"
        "Commands:\n"
        "/markers - Where you left off\n"
        "/add <text> - Add a marker\n"
        "/advance <id> [n] - Move a marker forward\n"
        "/today - Rhythms due today\n"
        "/done <id> - Mark a rhythm done\n"
        "/undo - Undo the last change\n"
        "/help - Show all commands"
    )


async def help_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /help command."""
    await update.message.reply_text(
        "*leftoff Commands*\n\n"
        "/markers - List active markers, pinned first\n"
        "/add <text> - e.g. `/add Mere Christianity page 94 next: underline quote`\n"
        "/advance <id> [n] - Advance by n pages/chapters/verses/steps (seconds for timestamps)\n"
        "/today - Rhythms due today or overdue\n"
        "/done <id> - Mark a rhythm done and schedule the next one\n"
        "/undo - Undo the last change\n",
        parse_mode="Markdown",
    )


async def markers_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /markers command - list active markers."""
    try:
        markers = active_markers(_store().all_markers())
    except StoreError as e:
        logger.error(f"Failed to load markers: {e}")
        await update.message.reply_text(f"Failed to load markers: {e}")
        return

    await send_markdown(update.message, format_markers(markers))


async def add_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /add <text> - parse free text into a marker."""
    text = " ".join(context.args or []).strip()
    if not text:
        await update.message.reply_text("Usage: /add Mere Christianity page 94 next: underline quote")
        return

    try:
        marker = workflows.add_marker(_store(), text)
    except StoreError as e:
        await update.message.reply_text(f"Failed to save: {e}")
        return

    lines = [f"Added: {marker.title}"]
    if marker.pointer:
        lines.append(f"Pointer: {marker.pointer}")
    if marker.next_step:
        lines.append(f"Next: {marker.next_step}")
    await update.message.reply_text("\n".join(lines))


async def advance_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /advance <id> [n]."""
    args = context.args or []
    if not args:
        await update.message.reply_text("Usage: /advance <id> [n]")
        return

    try:
        amount = int(args[1]) if len(args) > 1 else 1
    except ValueError:
        await update.message.reply_text(f"'{args[1]}' is not a number.")
        return

    try:
        marker = workflows.advance(_store(), args[0], amount)
    except HANDLED_ERRORS as e:
        await update.message.reply_text(str(e))
        return

    await update.message.reply_text(f"{marker.title} @ {marker.pointer}")


async def today_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /today - rhythms due today."""
    try:
        due = due_rhythms(_store().all_rhythms())
    except StoreError as e:
        await update.message.reply_text(f"Failed to load rhythms: {e}")
        return

    if not due:
        await update.message.reply_text("Nothing due today.")
        return

    await send_markdown(update.message, "**Due today**\n\n" + format_rhythms(due))


async def done_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /done <id> - mark a rhythm done."""
    args = context.args or []
    if not args:
        await update.message.reply_text("Usage: /done <id>")
        return

    try:
        rhythm = workflows.mark_done(_store(), args[0])
    except HANDLED_ERRORS as e:
        await update.message.reply_text(str(e))
        return

    await update.message.reply_text(
        f"Done: {rhythm.title}. Next: {format_relative_date(rhythm.next_occurrence)}"
    )


async def undo_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /undo."""
    try:
        action = workflows.undo_last(_store())
    except HANDLED_ERRORS as e:
        await update.message.reply_text(str(e))
        return

    if action is None:
        await update.message.reply_text("Nothing to undo.")
        return
    await update.message.reply_text(f"Undone: {action.description}")
