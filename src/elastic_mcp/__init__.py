"""Elasticsearch tools exposed over the Model Context Protocol."""

from .client import ElasticClient, Failure, Outcome, Success
from .config import Config
from .errors import AuthenticationError, ConfigError

__all__ = [
    "AuthenticationError",
    "Config",
    "ConfigError",
    "ElasticClient",
    "Failure",
    "Outcome",
    "Success",
]
