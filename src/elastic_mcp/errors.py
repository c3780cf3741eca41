from __future__ import annotations


class ElasticMCPError(RuntimeError):
    pass


class ConfigError(ElasticMCPError):
    pass


class AuthenticationError(ElasticMCPError):
    """Raised when a client is constructed without any usable credential."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "No authentication credentials provided. Set ELASTIC_API_KEY_ENCODED, "
            "or ELASTIC_API_KEY_ID + ELASTIC_API_KEY_SECRET, "
            "or ELASTIC_USERNAME + ELASTIC_PASSWORD"
        )
