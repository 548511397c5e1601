"""Runtime settings read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from .diff import STRATEGIES

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    default_author: str = "AI Assistant"
    default_initials: str = "AI"
    diff_strategy: str = "word"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()

        strategy = os.environ.get("DOCX_REVISION_DIFF", defaults.diff_strategy).strip().lower()
        if strategy not in STRATEGIES:
            logger.warning("Unknown diff strategy %r, using %r", strategy, defaults.diff_strategy)
            strategy = defaults.diff_strategy

        log_level = os.environ.get("DOCX_REVISION_LOG_LEVEL", defaults.log_level).strip().upper()
        if log_level not in _LOG_LEVELS:
            logger.warning("Unknown log level %r, using %r", log_level, defaults.log_level)
            log_level = defaults.log_level

        return cls(
            default_author=os.environ.get("DOCX_REVISION_AUTHOR") or defaults.default_author,
            default_initials=os.environ.get("DOCX_REVISION_INITIALS") or defaults.default_initials,
            diff_strategy=strategy,
            log_level=log_level,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for this process (read once)."""
    return Settings.from_env()
