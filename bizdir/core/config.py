"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_LLM_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_LLM_MODEL = "llama-3.3-70b-versatile"
DEFAULT_GEOCODER_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_GEOCODER_USER_AGENT = "JoCoNCBusDirectory/1.0"


class ConfigError(RuntimeError):
    """Raised when a setting cannot be parsed."""


@dataclass(frozen=True)
class Settings:
    database_url: str = ""
    llm_api_key: str = ""
    llm_base_url: str = DEFAULT_LLM_BASE_URL
    llm_model: str = DEFAULT_LLM_MODEL
    llm_temperature: float = 0.1
    llm_max_tokens: int = 2000
    geocoder_url: str = DEFAULT_GEOCODER_URL
    geocoder_user_agent: str = DEFAULT_GEOCODER_USER_AGENT
    default_city: str = "Smithfield"
    default_state: str = "NC"
    fetch_timeout_seconds: float = 20.0
    render_timeout_seconds: float = 15.0
    max_execution_seconds: float = 55.0
    time_buffer_seconds: float = 5.0
    inter_url_delay_seconds: float = 2.0
    max_businesses_per_url: int = 50
    chromium_executable_path: Optional[str] = None
    chromium_args: Tuple[str, ...] = field(default_factory=tuple)
    scheduled_urls: Tuple[str, ...] = field(default_factory=tuple)
    worker_port: int = 9000


def _get_number(name: str, default: str, cast):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be numeric, got {raw!r}") from exc


def _split_list(raw: Optional[str], sep: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(sep) if part.strip())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    database_url = os.getenv("DATABASE_URL", "")
    llm_api_key = os.getenv("LLM_API_KEY") or os.getenv("GROQ_API_KEY", "")

    if not database_url:
        logger.warning("DATABASE_URL is not set; database operations will fail.")
    if not llm_api_key:
        logger.warning("LLM_API_KEY is not configured; directory extraction will fail.")

    return Settings(
        database_url=database_url,
        llm_api_key=llm_api_key,
        llm_base_url=os.getenv("LLM_BASE_URL", DEFAULT_LLM_BASE_URL),
        llm_model=os.getenv("LLM_MODEL", DEFAULT_LLM_MODEL),
        llm_temperature=_get_number("LLM_TEMPERATURE", "0.1", float),
        llm_max_tokens=_get_number("LLM_MAX_TOKENS", "2000", int),
        geocoder_url=os.getenv("GEOCODER_URL", DEFAULT_GEOCODER_URL),
        geocoder_user_agent=os.getenv("GEOCODER_USER_AGENT", DEFAULT_GEOCODER_USER_AGENT),
        default_city=os.getenv("DEFAULT_CITY", "Smithfield"),
        default_state=os.getenv("DEFAULT_STATE", "NC"),
        fetch_timeout_seconds=_get_number("FETCH_TIMEOUT_SECONDS", "20", float),
        render_timeout_seconds=_get_number("RENDER_TIMEOUT_SECONDS", "15", float),
        max_execution_seconds=_get_number("MAX_EXECUTION_SECONDS", "55", float),
        time_buffer_seconds=_get_number("TIME_BUFFER_SECONDS", "5", float),
        inter_url_delay_seconds=_get_number("INTER_URL_DELAY_SECONDS", "2", float),
        max_businesses_per_url=_get_number("MAX_BUSINESSES_PER_URL", "50", int),
        chromium_executable_path=os.getenv("CHROMIUM_EXECUTABLE_PATH") or None,
        chromium_args=_split_list(os.getenv("CHROMIUM_ARGS"), None),
        scheduled_urls=_split_list(os.getenv("SCRAPE_DIRECTORIES_URLS"), ","),
        worker_port=_get_number("WORKER_PORT", "9000", int),
    )
