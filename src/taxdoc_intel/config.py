"""Runtime settings for the document analysis backend."""

import os
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import ConfigurationMissing

logger = logging.getLogger(__name__)

ENDPOINT_ENV = "AZURE_DOCUMENT_INTELLIGENCE_ENDPOINT"
API_KEY_ENV = "AZURE_DOCUMENT_INTELLIGENCE_API_KEY"

DEFAULT_API_VERSION = "2024-11-30"


@dataclass(frozen=True)
class Settings:
    """Backend connection settings."""

    endpoint: str
    api_key: str
    api_version: str = DEFAULT_API_VERSION
    poll_interval: float = 1.0  # seconds between status polls
    poll_timeout: float = 120.0
    request_timeout: float = 30.0

    def __post_init__(self):
        if not self.endpoint:
            raise ConfigurationMissing(ENDPOINT_ENV)
        if not self.api_key:
            raise ConfigurationMissing(API_KEY_ENV)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Load settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Settings instance

        Raises:
            ConfigurationMissing: If the endpoint or API key is not set
        """
        env = os.environ if environ is None else environ

        endpoint = env.get(ENDPOINT_ENV, "").strip()
        api_key = env.get(API_KEY_ENV, "").strip()

        settings = cls(
            endpoint=endpoint.rstrip("/"),
            api_key=api_key,
            api_version=env.get("TAXDOC_API_VERSION", DEFAULT_API_VERSION),
            poll_interval=_float_setting(env, "TAXDOC_POLL_INTERVAL", 1.0),
            poll_timeout=_float_setting(env, "TAXDOC_POLL_TIMEOUT", 120.0),
            request_timeout=_float_setting(env, "TAXDOC_REQUEST_TIMEOUT", 30.0),
        )
        logger.info(f"Loaded backend settings for endpoint {settings.endpoint}")
        return settings


def _float_setting(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default
