"""Configuration management for leftoff."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

LEFTOFF_HOME = Path(os.environ.get("LEFTOFF_HOME", Path.home() / "leftoff"))
CONFIG_FILE = LEFTOFF_HOME / "config" / "leftoff.conf"
DATA_DIR = LEFTOFF_HOME / "data"
DEFAULT_DATA_FILE = DATA_DIR / "leftoff.json"

TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class Config:
    """leftoff configuration."""

    data_file: str = ""
    seed_sample_data: bool = True
    timezone: str = "America/Toronto"
    backup_dir: str = ""
    # Telegram bot settings
    telegram_bot_token: str = ""
    telegram_allowed_users: list[int] = field(default_factory=list)
    telegram_reminder_time: str = "08:30"

    @property
    def data_path(self) -> Path:
        if self.data_file:
            return Path(self.data_file).expanduser()
        return DEFAULT_DATA_FILE

    @property
    def backup_path(self) -> Path:
        if self.backup_dir:
            return Path(self.backup_dir).expanduser()
        return LEFTOFF_HOME / "backups"


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from unquoted values."""
    for quote in ('"', "'"):
        if value.startswith(quote):
            end_quote = value.find(quote, 1)
            return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def parse_config(text: str) -> Config:
    """Parse leftoff.conf contents (KEY=value lines, # comments)."""
    config = Config()

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "data_file":
                config.data_file = value
            case "seed_sample_data":
                config.seed_sample_data = value.lower() in TRUE_VALUES
            case "timezone":
                config.timezone = value
            case "backup_dir":
                config.backup_dir = value
            case "telegram_bot_token":
                config.telegram_bot_token = value
            case "telegram_allowed_users":
                users = []
                for u in value.split(","):
                    u = u.strip()
                    if not u:
                        continue
                    try:
                        users.append(int(u))
                    except ValueError:
                        logger.warning(f"Ignoring invalid TELEGRAM_ALLOWED_USERS entry: {u}")
                config.telegram_allowed_users = users
            case "telegram_reminder_time":
                config.telegram_reminder_time = value
            case _:
                logger.debug(f"Unknown config key: {key}")

    return config


def load_config() -> Config:
    """Load configuration from leftoff.conf file."""
    if not CONFIG_FILE.exists():
        return Config()
    return parse_config(CONFIG_FILE.read_text())
