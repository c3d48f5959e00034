"""Runtime configuration loaded from the environment (.env supported)."""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

import pytz
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class Settings:
    """Engine settings."""
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    llm_timeout_seconds: float = 10.0
    llm_max_tokens: int = 800
    llm_temperature: float = 0.3
    use_ai_suggestions: bool = False
    booking_timezone: str = "UTC"
    horizon_weeks: int = 4
    cancellation_notice_hours: int = 24
    profile_api_base_url: Optional[str] = None
    commitment_api_base_url: Optional[str] = None
    http_timeout_seconds: float = 10.0
    log_level: str = "INFO"


def _env(name: str, caster: Callable[[str], T], default: T) -> T:
    """Read and cast an environment variable, keeping the default on bad input."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return caster(raw.strip())
    except ValueError:
        logger.warning("Invalid value for %s: %r, using default %r", name, raw, default)
        return default


def _bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(value)


def _timezone(value: str) -> str:
    try:
        pytz.timezone(value)
    except pytz.UnknownTimeZoneError as e:
        raise ValueError(value) from e
    return value


def load_settings(dotenv: bool = True) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        dotenv: load a .env file first (existing variables win)
    """
    if dotenv:
        load_dotenv()

    api_key = os.getenv("OPENAI_API_KEY") or None
    return Settings(
        openai_api_key=api_key,
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        llm_timeout_seconds=_env("LLM_TIMEOUT_SECONDS", float, 10.0),
        llm_max_tokens=_env("LLM_MAX_TOKENS", int, 800),
        llm_temperature=_env("LLM_TEMPERATURE", float, 0.3),
        use_ai_suggestions=_env("USE_AI_SUGGESTIONS", _bool, api_key is not None),
        booking_timezone=_env("BOOKING_TIMEZONE", _timezone, "UTC"),
        horizon_weeks=_env("SUGGESTION_HORIZON_WEEKS", int, 4),
        cancellation_notice_hours=_env("CANCELLATION_NOTICE_HOURS", int, 24),
        profile_api_base_url=os.getenv("PROFILE_API_BASE_URL") or None,
        commitment_api_base_url=os.getenv("COMMITMENT_API_BASE_URL") or None,
        http_timeout_seconds=_env("HTTP_TIMEOUT_SECONDS", float, 10.0),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for scripts and the UI."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
