"""
Configuration for the Adonomics backend.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from adonomics.errors import ConfigurationError


def _load_dotenv() -> None:
    # Try repo root first, then cwd for local runs
    repo_env = Path(__file__).resolve().parents[3] / ".env"
    if repo_env.exists():
        load_dotenv(dotenv_path=repo_env)
    else:
        load_dotenv(dotenv_path=Path(".env"))


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}.")


def _env_str(name: str) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    return value or None


@dataclass
class Config:
    """Main configuration for the analysis backend."""

    # Twelve Labs video index
    twelve_labs_api_key: Optional[str] = None
    twelve_labs_index_id: Optional[str] = None
    search_options: tuple = ("visual", "audio")

    # Groq via LiteLLM
    groq_api_key: Optional[str] = None
    llm_model: str = "groq/llama-3.3-70b-versatile"
    llm_temperature: float = 0.3
    llm_max_tokens: int = 8000
    llm_timeout_seconds: int = 90

    # Storage
    database_url: str = "sqlite:///adonomics.db"

    # Indexing wait. max_index_wait_seconds <= 0 polls until a terminal status.
    poll_interval_seconds: float = 5.0
    max_index_wait_seconds: int = 300

    # Caller-facing delay when a video is still indexing
    retry_after_seconds: int = 900

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        _load_dotenv()
        return cls(
            twelve_labs_api_key=_env_str("TWELVE_LABS_API_KEY"),
            twelve_labs_index_id=_env_str("TWELVE_LABS_INDEX_ID"),
            groq_api_key=_env_str("GROQ_API_KEY"),
            llm_model=_env_str("ADONOMICS_LLM_MODEL") or cls.llm_model,
            llm_max_tokens=_env_int("ADONOMICS_LLM_MAX_TOKENS", cls.llm_max_tokens),
            llm_timeout_seconds=_env_int("ADONOMICS_LLM_TIMEOUT_SECONDS", cls.llm_timeout_seconds),
            database_url=_env_str("DATABASE_URL") or cls.database_url,
            poll_interval_seconds=float(
                _env_int("ADONOMICS_POLL_INTERVAL_SECONDS", int(cls.poll_interval_seconds))
            ),
            max_index_wait_seconds=_env_int(
                "ADONOMICS_MAX_INDEX_WAIT_SECONDS", cls.max_index_wait_seconds
            ),
            log_level=(_env_str("ADONOMICS_LOG_LEVEL") or cls.log_level).upper(),
        )

    @property
    def index_wait_ceiling(self) -> Optional[float]:
        if self.max_index_wait_seconds <= 0:
            return None
        return float(self.max_index_wait_seconds)

    def require_video_index(self) -> tuple[str, str]:
        """Return (api_key, index_id) or fail before any remote call is made."""
        if not self.twelve_labs_api_key:
            raise ConfigurationError("TwelveLabs API key is not configured")
        if not self.twelve_labs_index_id:
            raise ConfigurationError("TwelveLabs index ID is not configured")
        return self.twelve_labs_api_key, self.twelve_labs_index_id

    def require_language_model(self) -> str:
        if not self.groq_api_key:
            raise ConfigurationError("Groq API key is not configured")
        return self.groq_api_key


@lru_cache
def get_config() -> Config:
    """Process-wide configuration, loaded once from the environment."""
    return Config.from_env()
