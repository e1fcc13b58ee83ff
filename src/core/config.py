"""Runtime configuration (read from environment variables) and logging setup."""

import logging
import os
from dataclasses import dataclass
from typing import Self

from src.core.shared_types import BoardSizeKey, Difficulty

ENV_PREFIX = "TACTICS_"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class Settings:
    # in-memory by default: sessions never outlive the process
    database_url: str = "sqlite:///:memory:"
    sql_echo: bool = False
    default_board_size: BoardSizeKey = BoardSizeKey.SMALL
    bot_difficulty: Difficulty = Difficulty.MEDIUM
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Self:
        """Every field can be overridden with TACTICS_<FIELD_NAME_UPPERCASE>"""
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            database_url=env.get(f"{ENV_PREFIX}DATABASE_URL", defaults.database_url),
            sql_echo=env.get(f"{ENV_PREFIX}SQL_ECHO", "").lower() in ("1", "true", "yes"),
            default_board_size=BoardSizeKey(
                env.get(f"{ENV_PREFIX}DEFAULT_BOARD_SIZE", defaults.default_board_size)
            ),
            bot_difficulty=Difficulty(
                env.get(f"{ENV_PREFIX}BOT_DIFFICULTY", defaults.bot_difficulty)
            ),
            log_level=env.get(f"{ENV_PREFIX}LOG_LEVEL", defaults.log_level).upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    """Attach a single stream handler to the project's root logger ('fantasy_tactics')."""
    logger = logging.getLogger("fantasy_tactics")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)


settings = Settings.from_env()
