"""Configuration loading for the File Search proxy."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path

import keyring
from keyring.errors import KeyringError

from filesearch.constants import (
    DEFAULT_MODEL,
    DEFAULT_PAGE_SIZE,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_MAX_ATTEMPTS,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "filesearch-gemini"
KEY_NAME = "api_key"

# Checked in order after the keyring.
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_GENERATIVE_AI_API_KEY")

DEFAULT_CONFIG_PATH = Path("config/file_search.json")


def get_api_key() -> str:
    """Get Gemini API key: system keyring first, then environment variables.

    Returns:
        API key string.

    Raises:
        RuntimeError: If no key found anywhere, with actionable instructions.
    """
    try:
        api_key = keyring.get_password(SERVICE_NAME, KEY_NAME)
    except KeyringError:
        logger.debug("No usable keyring backend", exc_info=True)
        api_key = None
    if api_key:
        return api_key

    for var in API_KEY_ENV_VARS:
        api_key = os.environ.get(var)
        if api_key:
            return api_key

    raise RuntimeError(
        "Gemini API key not found.\n"
        "Set it with: filesearch config set-api-key YOUR_KEY\n"
        "Or: export GEMINI_API_KEY=your-key"
    )


@dataclass
class FileSearchConfig:
    """Runtime settings for the client, poller and HTTP layer."""

    api_key: str | None = None
    default_model: str = DEFAULT_MODEL
    page_size: int = DEFAULT_PAGE_SIZE
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    poll_max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS
    poll_timeout_seconds: float | None = None  # optional wall-clock ceiling
    default_chunking: str | None = None  # preset name, None = provider default


def load_config(config_path: Path | None = None) -> FileSearchConfig:
    """Load configuration from JSON, falling back to defaults.

    Reads from ``config/file_search.json`` when *config_path* is ``None``.
    Unknown keys are ignored. When the file carries no ``api_key`` the
    key is resolved with :func:`get_api_key`; a missing key is left as
    ``None`` so commands that never reach the API still work.

    Args:
        config_path: Optional explicit path to the JSON file.

    Returns:
        FileSearchConfig populated from file + keyring/env.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    data: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            data = json.load(f)
        logger.debug("Loaded config from %s", config_path)

    field_names = {f.name for f in fields(FileSearchConfig)}
    kwargs = {k: v for k, v in data.items() if k in field_names}
    config = FileSearchConfig(**kwargs)

    if config.api_key is None:
        try:
            config.api_key = get_api_key()
        except RuntimeError:
            logger.debug("No Gemini API key configured")

    return config
