"""Shared fixtures: a client wired to an in-process fake cluster."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from elastic_mcp.client import ElasticClient
from elastic_mcp.config import Config

BASE_URL = "https://test.elastic.cloud"


def make_config(**overrides: Any) -> Config:
    fields: Dict[str, Any] = {"elastic_url": BASE_URL, "api_key_encoded": "test-key"}
    fields.update(overrides)
    return Config(**fields)


def make_client(handler: Callable[[httpx.Request], Any], **overrides: Any) -> ElasticClient:
    return ElasticClient(make_config(**overrides), transport=httpx.MockTransport(handler))


class FakeCluster:
    """
    Routes (method, path) to canned JSON responses and records every request.
    Unknown routes answer 404 with a structured error body.
    """

    def __init__(self, routes: Optional[Dict[Tuple[str, str], Any]] = None) -> None:
        self.routes: Dict[Tuple[str, str], Any] = dict(routes or {})
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key in self.routes:
            reply = self.routes[key]
            if isinstance(reply, httpx.Response):
                return reply
            return httpx.Response(200, json=reply)
        return httpx.Response(
            404,
            json={"error": {"type": "not_found", "reason": "Resource not found"}},
        )

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture()
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture()
def client(cluster: FakeCluster) -> ElasticClient:
    return make_client(cluster)


def result_text(result: Dict[str, Any]) -> str:
    return result["content"][0]["text"]


def result_json(result: Dict[str, Any]) -> Any:
    return json.loads(result_text(result))
