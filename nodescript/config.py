"""
Runtime settings for the nodescript entry points (CLI and HTTP server).

Values come from the environment; entry points call load_settings(), which
loads a .env file first so settings can live beside the project:

    NODESCRIPT_LANGUAGE         target language tag        (default: python)
    NODESCRIPT_DEBUG_INFO       1/true/yes to annotate     (default: off)
    NODESCRIPT_STRICT           1/true/yes: fail on dangling connections
    NODESCRIPT_MAX_PATH_LENGTH  control path bound         (default: 1000)
    NODESCRIPT_LOG_LEVEL        logging level name         (default: WARNING)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from nodescript.compiler.traversal import MAX_PATH_LENGTH

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_TRUE = frozenset({"1", "true", "yes", "on"})


def _flag(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in _TRUE


@dataclass(frozen=True)
class Settings:
    language: str = "python"
    debug_info: bool = False
    strict: bool = False
    max_path_length: int = MAX_PATH_LENGTH
    log_level: str = "WARNING"

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None) -> 'Settings':
        env = os.environ if env is None else env
        max_path = env.get("NODESCRIPT_MAX_PATH_LENGTH")
        return Settings(
            language=env.get("NODESCRIPT_LANGUAGE", "python"),
            debug_info=_flag(env.get("NODESCRIPT_DEBUG_INFO")),
            strict=_flag(env.get("NODESCRIPT_STRICT")),
            max_path_length=int(max_path) if max_path else MAX_PATH_LENGTH,
            log_level=env.get("NODESCRIPT_LOG_LEVEL", "WARNING").upper(),
        )


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """Load .env (without overriding real environment variables) and read settings."""
    load_dotenv(dotenv_path)
    return Settings.from_env()


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.WARNING), format=LOG_FORMAT)


__all__ = ["Settings", "load_settings", "configure_logging", "LOG_FORMAT"]
