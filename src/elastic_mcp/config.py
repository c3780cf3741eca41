# src/elastic_mcp/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

from .errors import ConfigError

DEFAULT_TIMEOUT_MS = 30000

_TRUTHY = ("1", "true", "yes")


def _opt(env: Mapping[str, str], key: str) -> Optional[str]:
    # empty strings are treated as unset
    val = env.get(key)
    return val if val else None


@dataclass(frozen=True)
class Config:
    elastic_url: str
    api_key_encoded: Optional[str] = None
    api_key_id: Optional[str] = None
    api_key_secret: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    skip_ssl_verify: bool = False
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    log_level: str = "info"

    @staticmethod
    def load(env: Optional[Mapping[str, str]] = None) -> "Config":
        env = os.environ if env is None else env

        url = _opt(env, "ELASTIC_URL")
        if not url:
            raise ConfigError("ELASTIC_URL environment variable is required")
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"ELASTIC_URL must be an absolute http(s) URL, got: {url}")

        raw_timeout = _opt(env, "ELASTIC_TIMEOUT") or str(DEFAULT_TIMEOUT_MS)
        try:
            timeout_ms = int(raw_timeout)
        except ValueError:
            raise ConfigError(f"ELASTIC_TIMEOUT must be an integer (milliseconds), got: {raw_timeout}")
        if timeout_ms <= 0:
            raise ConfigError(f"ELASTIC_TIMEOUT must be positive, got: {timeout_ms}")

        return Config(
            elastic_url=url,
            api_key_encoded=_opt(env, "ELASTIC_API_KEY_ENCODED"),
            api_key_id=_opt(env, "ELASTIC_API_KEY_ID"),
            api_key_secret=_opt(env, "ELASTIC_API_KEY_SECRET"),
            username=_opt(env, "ELASTIC_USERNAME"),
            password=_opt(env, "ELASTIC_PASSWORD"),
            skip_ssl_verify=(env.get("ELASTIC_SKIP_SSL_VERIFY") or "false").lower() in _TRUTHY,
            timeout_ms=timeout_ms,
            log_level=(env.get("LOG_LEVEL") or "info").lower(),
        )

    def redacted(self) -> Dict[str, Any]:
        """Loggable view of the config; secrets are masked."""
        def mask(v: Optional[str]) -> Optional[str]:
            return "***" if v else None

        return {
            "elastic_url": self.elastic_url,
            "api_key_encoded": mask(self.api_key_encoded),
            "api_key_id": self.api_key_id,
            "api_key_secret": mask(self.api_key_secret),
            "username": self.username,
            "password": mask(self.password),
            "skip_ssl_verify": self.skip_ssl_verify,
            "timeout_ms": self.timeout_ms,
            "log_level": self.log_level,
        }
