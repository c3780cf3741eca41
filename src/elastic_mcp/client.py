from __future__ import annotations

import asyncio
import base64
import json
import logging
import time
from typing import Any, Dict, Iterable, Literal, Mapping, Optional, Union
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from .config import Config
from .errors import AuthenticationError

logger = logging.getLogger(__name__)

QueryParams = Mapping[str, Union[str, int, float, bool]]

# Methods that never carry a request body
_BODYLESS = ("GET", "HEAD")

NDJSON_CONTENT_TYPE = "application/x-ndjson"


class Success(BaseModel):
    ok: Literal[True] = True
    data: Any = None


class Failure(BaseModel):
    ok: Literal[False] = False
    kind: str
    reason: str
    status: Optional[int] = None


Outcome = Union[Success, Failure]


def _b64(s: str) -> str:
    return base64.b64encode(s.encode("utf-8")).decode("ascii")


def resolve_authorization(cfg: Config) -> str:
    """
    Pick the Authorization header value from the config, first match wins:

      1. pre-encoded API key            -> ApiKey <encoded>
      2. API key id + secret            -> ApiKey base64(id:secret)
      3. username + password            -> Basic base64(username:password)

    Raises AuthenticationError when none is present.
    """
    if cfg.api_key_encoded:
        return f"ApiKey {cfg.api_key_encoded}"
    if cfg.api_key_id and cfg.api_key_secret:
        return f"ApiKey {_b64(f'{cfg.api_key_id}:{cfg.api_key_secret}')}"
    if cfg.username and cfg.password:
        return f"Basic {_b64(f'{cfg.username}:{cfg.password}')}"
    raise AuthenticationError()


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query(params: Optional[QueryParams]) -> str:
    if not params:
        return ""
    return urlencode([(str(k), _stringify(v)) for k, v in params.items()])


def _decode(text: str) -> Any:
    if not text:
        return {}
    try:
        return json.loads(text)
    except ValueError:
        return {"raw": text}


def _failure_from_response(resp: httpx.Response, data: Any) -> Failure:
    fallback_reason = resp.reason_phrase or "Request failed"
    err = data.get("error") if isinstance(data, dict) else None
    if isinstance(err, dict):
        return Failure(
            kind=str(err.get("type") or "request_error"),
            reason=str(err.get("reason") or fallback_reason),
            status=resp.status_code,
        )
    if isinstance(err, str) and err:
        return Failure(kind="request_error", reason=err, status=resp.status_code)
    return Failure(kind="request_error", reason=fallback_reason, status=resp.status_code)


class ElasticClient:
    """
    Authenticated HTTP client for an Elasticsearch cluster.

    Every call returns an Outcome (Success | Failure) instead of raising; the
    only exception the client raises is AuthenticationError at construction.
    """

    def __init__(self, cfg: Config, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.base_url: str = cfg.elastic_url.rstrip("/")
        self.timeout_ms: int = cfg.timeout_ms
        self.verify: bool = not cfg.skip_ssl_verify
        self._transport = transport
        self._headers: Dict[str, str] = {
            "Authorization": resolve_authorization(cfg),
            "Content-Type": "application/json",
        }
        if not self.verify:
            logger.warning("TLS certificate verification is disabled (ELASTIC_SKIP_SSL_VERIFY)")

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    def _url(self, path: str, params: Optional[QueryParams]) -> str:
        url = f"{self.base_url}{path}"
        qs = build_query(params)
        return f"{url}?{qs}" if qs else url

    async def _exchange(
        self,
        method: str,
        url: str,
        content: Optional[str],
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        timeout_s = self.timeout_ms / 1000
        async with httpx.AsyncClient(
            headers=self._headers,
            timeout=timeout_s,
            verify=self.verify,
            transport=self._transport,
        ) as http:
            return await http.request(method, url, content=content, headers=headers)

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[QueryParams] = None,
        *,
        ndjson: Optional[Iterable[Any]] = None,
    ) -> Outcome:
        """
        Send one request. `body` is always JSON-encoded; `ndjson` instead sends
        one JSON document per line (bulk-style endpoints such as _msearch).
        """
        method = method.upper()
        url = self._url(path, params)

        content: Optional[str] = None
        headers: Optional[Dict[str, str]] = None
        if method not in _BODYLESS:
            if ndjson is not None:
                content = "".join(json.dumps(doc) + "\n" for doc in ndjson)
                headers = {"Content-Type": NDJSON_CONTENT_TYPE}
            elif body is not None:
                content = json.dumps(body)

        t0 = time.monotonic()
        try:
            # wait_for cancels the in-flight exchange once the deadline passes
            resp = await asyncio.wait_for(self._exchange(method, url, content, headers), timeout=self.timeout_ms / 1000)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("request timed out", extra={"method": method, "path": path, "kind": "timeout"})
            return Failure(kind="timeout", reason=f"Request timed out after {self.timeout_ms}ms")
        except (httpx.TransportError, OSError) as exc:
            logger.warning("connection error: %s", exc, extra={"method": method, "path": path, "kind": "connection_error"})
            return Failure(kind="connection_error", reason=str(exc) or exc.__class__.__name__)
        except Exception:
            logger.exception("unexpected error", extra={"method": method, "path": path, "kind": "unknown_error"})
            return Failure(kind="unknown_error", reason="An unknown error occurred")

        elapsed_ms = int((time.monotonic() - t0) * 1000)
        data = _decode(resp.text)
        logger.debug(
            "%s %s -> %s",
            method,
            path,
            resp.status_code,
            extra={"method": method, "path": path, "status": resp.status_code, "elapsed_ms": elapsed_ms},
        )

        if not resp.is_success:
            failure = _failure_from_response(resp, data)
            logger.warning(
                "request failed: %s",
                failure.reason,
                extra={"method": method, "path": path, "status": resp.status_code, "kind": failure.kind},
            )
            return failure

        return Success(data=data)

    # ─────────────────────────────────────────────────────────────
    # Convenience wrappers
    # ─────────────────────────────────────────────────────────────
    async def get(self, path: str, params: Optional[QueryParams] = None) -> Outcome:
        return await self.request("GET", path, None, params)

    async def post(self, path: str, body: Any = None, params: Optional[QueryParams] = None) -> Outcome:
        return await self.request("POST", path, body, params)

    async def put(self, path: str, body: Any = None, params: Optional[QueryParams] = None) -> Outcome:
        return await self.request("PUT", path, body, params)

    async def delete(self, path: str, body: Any = None, params: Optional[QueryParams] = None) -> Outcome:
        return await self.request("DELETE", path, body, params)

    async def post_ndjson(self, path: str, docs: Iterable[Any], params: Optional[QueryParams] = None) -> Outcome:
        return await self.request("POST", path, None, params, ndjson=docs)

    async def ping(self) -> bool:
        """True iff a read of the cluster root succeeds."""
        outcome = await self.get("/")
        return isinstance(outcome, Success)

    async def info(self) -> Outcome:
        return await self.get("/")
