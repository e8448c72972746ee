"""Telegram message formatting utilities."""

from datetime import date

import telegramify_markdown

from .core.records import Marker, Rhythm
from .core.schedule import format_relative_date, format_schedule


async def send_markdown(bot_or_msg, text: str, *, chat_id: int | None = None):
    """Send markdown text to Telegram, converting to MarkdownV2.

    bot_or_msg: a Bot instance (pass chat_id) or an Update.message (calls reply_text).
    """
    converted = telegramify_markdown.markdownify(text)
    chunks = [converted[i : i + 4000] for i in range(0, len(converted), 4000)]
    for chunk in chunks:
        if chat_id is not None:
            await bot_or_msg.send_message(chat_id=chat_id, text=chunk, parse_mode="MarkdownV2")
        else:
            await bot_or_msg.reply_text(chunk, parse_mode="MarkdownV2")


def format_markers(markers: list[Marker]) -> str:
    """Markdown list of markers with pointers and next steps."""
    if not markers:
        return "No markers yet. Send /add followed by what you're working on."

    lines = ["**Where you left off**", ""]
    for m in markers:
        pin = "📌 " if m.pinned else ""
        pointer = f" @ {m.pointer}" if m.pointer else ""
        lines.append(f"- {pin}**{m.title}**{pointer} `{m.id[:8]}`")
        if m.next_step:
            lines.append(f"  Next: {m.next_step}")
    return "\n".join(lines)


def format_rhythms(rhythms: list[Rhythm], today: date | None = None) -> str:
    lines = []
    for r in rhythms:
        when = format_relative_date(r.next_occurrence, today)
        lines.append(f"- **{r.title}** ({format_schedule(r.schedule)}, {when}) `{r.id[:8]}`")
    return "\n".join(lines)


def format_reminder(rhythms: list[Rhythm], backup_due: bool = False, today: date | None = None) -> str | None:
    """Daily reminder text, or None when there is nothing to say."""
    sections = []
    if rhythms:
        sections.append("**Due today**\n\n" + format_rhythms(rhythms, today))
        sections.append("Mark one done with /done <id>.")
    if backup_due:
        sections.append("It's been a while since your last backup. Run `leftoff export` to save one.")
    if not sections:
        return None
    return "\n\n".join(sections)
