"""Deployment configuration.

Values are read from the environment (``CHATDESK_`` prefix) or a ``.env`` file.
Credentials live here and are handed to the pillars at construction time.
"""

import logging
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CHATDESK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    chatgpt_api_key: Optional[str] = None
    deepseek_api_key: Optional[str] = None
    elevenlabs_api_key: Optional[str] = None

    default_model: str = "deepseek-coder"

    adapter: Literal["sql", "rest", "memory"] = "sql"
    database_url: str = "sqlite:///chatdesk.db"
    rest_base_url: Optional[str] = None
    rest_api_key: Optional[str] = None
    rest_fail_soft: bool = True

    request_timeout: float = 30.0
    deadline_seconds: float = 60.0
    max_turns: int = 5
    simulated_delay: float = 1.0

    audio_dir: str = "audio"
    log_level: str = "INFO"


def build_adapter(config: Config):
    """Constructs the data adapter selected by the deployment."""
    from . import adapters

    if config.adapter == "rest":
        if not config.rest_base_url:
            raise ConfigurationError(
                "CHATDESK_REST_BASE_URL is required when CHATDESK_ADAPTER=rest"
            )
        return adapters.RestAPI(
            base_url=config.rest_base_url,
            api_key=config.rest_api_key or "",
            timeout=config.request_timeout,
            fail_soft=config.rest_fail_soft,
        )
    if config.adapter == "memory":
        return adapters.InMemory()
    return adapters.SQLStore(config.database_url)


def build_voice(config: Config):
    """Constructs the voice collaborator, or None when no key is configured."""
    if not config.elevenlabs_api_key:
        return None
    from .voice import ElevenLabs

    return ElevenLabs(
        api_key=config.elevenlabs_api_key,
        audio_dir=config.audio_dir,
        timeout=config.request_timeout,
    )


def configure_logging(level: str = "INFO") -> None:
    """Sends package logs to stderr at the given level."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("chatdesk").setLevel(level.upper())
