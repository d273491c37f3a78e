"""
Configuration loader for raidchat.

Loads deployment settings from chat.env in a config directory. Every key is
optional; a missing file yields the defaults below.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from . import envparse
from . import validate

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "chat.env"

DEFAULT_API_BASE_URL = "http://localhost:8000"
DEFAULT_API_TIMEOUT = 30.0
# Below this confidence a classified message is treated as unrecognised.
DEFAULT_CONFIDENCE_THRESHOLD = 0.5
DEFAULT_ACTOR = "chat"


class ConfigError(Exception):
    """chat.env could not be parsed or failed schema validation."""


@dataclass
class ChatConfig:
    """Deployment settings from chat.env"""
    api_base_url: str = DEFAULT_API_BASE_URL
    api_key: str = ""
    api_timeout: float = DEFAULT_API_TIMEOUT
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    actor: str = DEFAULT_ACTOR  # Recorded as the actor of workflow transitions


def _parse_threshold(raw: str | None) -> float:
    if raw is None:
        return DEFAULT_CONFIDENCE_THRESHOLD
    value = float(raw)
    if not 0.0 <= value <= 1.0:
        logger.warning(
            f"CONFIDENCE_THRESHOLD {raw} outside [0, 1], "
            f"using default {DEFAULT_CONFIDENCE_THRESHOLD}"
        )
        return DEFAULT_CONFIDENCE_THRESHOLD
    return value


def load_chat_config(config_dir: Path | None) -> ChatConfig:
    """Load chat.env from config_dir and return ChatConfig.

    Raises:
        ConfigError: if the file exists but is malformed or fails validation
    """
    if config_dir is None:
        return ChatConfig()

    env_path = config_dir / CONFIG_FILENAME
    if not env_path.exists():
        logger.debug(f"No {CONFIG_FILENAME} in {config_dir}, using defaults")
        return ChatConfig()

    try:
        env = envparse.load_env(env_path)
        validate.validate(env, "chat_config")
    except (ValueError, validate.ValidationError) as e:
        raise ConfigError(f"{env_path}: {e}") from e

    return ChatConfig(
        api_base_url=env.get("API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
        api_key=env.get("API_KEY", ""),
        api_timeout=float(env.get("API_TIMEOUT", DEFAULT_API_TIMEOUT)),
        confidence_threshold=_parse_threshold(env.get("CONFIDENCE_THRESHOLD")),
        actor=env.get("ACTOR", DEFAULT_ACTOR),
    )
