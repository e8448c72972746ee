"""leftoff Telegram Bot."""

import logging
from datetime import datetime

from telegram import Update, Bot
from telegram.ext import (
    Application,
    CommandHandler,
    MessageHandler,
    filters,
)
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from . import workflows
from .config import Config, load_config
from .core.backup import backup_due
from .core.records import due_rhythms
from .telegram_format import format_reminder, send_markdown
from .telegram_handlers import (
    start_handler,
    help_handler,
    markers_handler,
    add_handler,
    advance_handler,
    today_handler,
    done_handler,
    undo_handler,
)

logger = logging.getLogger(__name__)


class AuthFilter(filters.BaseFilter):
    """Filter to only allow authorized users."""

    def __init__(self, allowed_users: list[int]):
        super().__init__()
        self.allowed_users = allowed_users

    def check_update(self, update: Update) -> bool:
        if not self.allowed_users:
            return True  # No restriction if no users configured
        user = update.effective_user
        if user is None:
            return False
        return user.id in self.allowed_users


def create_application(config: Config | None = None) -> Application:
    """Create and configure the Telegram bot application."""
    if config is None:
        config = load_config()

    if not config.telegram_bot_token:
        raise ValueError(
            "TELEGRAM_BOT_TOKEN not configured. "
            "Get a token from @BotFather on Telegram and add it to leftoff.conf"
        )

    app = Application.builder().token(config.telegram_bot_token).build()

    auth_filter = AuthFilter(config.telegram_allowed_users)

    app.add_handler(CommandHandler("start", start_handler, filters=auth_filter))
    app.add_handler(CommandHandler("help", help_handler, filters=auth_filter))
    app.add_handler(CommandHandler("markers", markers_handler, filters=auth_filter))
    app.add_handler(CommandHandler("add", add_handler, filters=auth_filter))
    app.add_handler(CommandHandler("advance", advance_handler, filters=auth_filter))
    app.add_handler(CommandHandler("today", today_handler, filters=auth_filter))
    app.add_handler(CommandHandler("done", done_handler, filters=auth_filter))
    app.add_handler(CommandHandler("undo", undo_handler, filters=auth_filter))

    async def unauthorized_handler(update: Update, context):
        user = update.effective_user
        logger.warning(f"Unauthorized access attempt from user {user.id} ({user.username})")
        await update.message.reply_text(
            "Unauthorized. This bot is private.\n"
            "If you're the owner, add your Telegram user ID to TELEGRAM_ALLOWED_USERS in leftoff.conf"
        )

    if config.telegram_allowed_users:
        app.add_handler(
            MessageHandler(~auth_filter & filters.ALL, unauthorized_handler)
        )

    return app


def setup_scheduler(app: Application, config: Config | None = None) -> AsyncIOScheduler:
    """Set up the daily rhythm reminder."""
    if config is None:
        config = load_config()

    scheduler = AsyncIOScheduler(timezone=config.timezone or "America/Toronto")

    if config.telegram_reminder_time and config.telegram_allowed_users:
        try:
            hour, minute = map(int, config.telegram_reminder_time.split(":"))
            scheduler.add_job(
                send_daily_reminder,
                CronTrigger(hour=hour, minute=minute),
                args=[app.bot, config.telegram_allowed_users, config],
                id="daily_reminder",
            )
            logger.info(f"Scheduled daily reminder at {hour:02d}:{minute:02d}")
        except ValueError:
            logger.warning(f"Invalid reminder time format: {config.telegram_reminder_time}")

    return scheduler


async def send_daily_reminder(bot: Bot, user_ids: list[int], config: Config):
    """Send today's due rhythms (and a backup nudge) to all authorized users."""
    store = workflows.get_store(config)
    now = datetime.now()

    due = [r for r in due_rhythms(store.all_rhythms(), now) if r.notification_enabled]
    settings = store.get_settings()
    nudge = backup_due(settings, now)

    text = format_reminder(due, nudge, now.date())
    if text is None:
        logger.info("Nothing due today, skipping reminder")
        return

    logger.info(f"Sending reminder for {len(due)} rhythm(s)")
    for user_id in user_ids:
        try:
            await send_markdown(bot, text, chat_id=user_id)
        except Exception as e:
            logger.error(f"Failed to send reminder to user {user_id}: {e}")

    if nudge:
        store.save_settings({**settings, "last_backup_reminder": now.isoformat()})


def run_bot():
    """Run the Telegram bot."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    config = load_config()
    app = create_application(config)
    scheduler = setup_scheduler(app, config)

    async def post_init(application: Application) -> None:
        """Start scheduler after event loop is running."""
        scheduler.start()
        logger.info("Scheduler started")

    app.post_init = post_init

    if config.telegram_allowed_users:
        logger.info(f"Bot authorized for users: {config.telegram_allowed_users}")
    else:
        logger.warning("No TELEGRAM_ALLOWED_USERS configured - bot is open to anyone!")

    logger.info("Starting leftoff Telegram bot...")

    app.run_polling(allowed_updates=Update.ALL_TYPES)
