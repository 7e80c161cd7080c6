"""Minimal JSON-RPC over HTTP client shared by the chain and relay clients."""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
import time
from typing import Any, Callable, Dict, Optional

import aiohttp

from distarb.common import metrics
from distarb.common.errors import JsonRpcError, TransportError
from distarb.relay.circuit_breaker import CircuitBreaker

log = logging.getLogger(__name__)

HeadersFn = Callable[[str], Dict[str, str]]

_MISSING = object()


class _RetryableHttpError(Exception):
    def __init__(self, status: int) -> None:
        super().__init__(f"http status {status}")
        self.status = status


class JsonRpcClient:
    """One endpoint, one session; bounded retries behind a circuit breaker.

    Connection failures and HTTP 429/5xx are retried up to ``max_retries``
    attempts. A JSON-RPC error object is an answer, not a transport fault,
    and is raised immediately as ``JsonRpcError``.
    """

    def __init__(
        self,
        url: str,
        *,
        endpoint: str = "rpc",
        max_retries: int = 3,
        timeout_seconds: float = 10.0,
        headers_fn: Optional[HeadersFn] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.url = url
        self.endpoint = endpoint
        self._max_retries = max(1, max_retries)
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._headers_fn = headers_fn
        self._session = session
        self._owns_session = session is None
        self._ids = itertools.count(1)
        self._breaker = CircuitBreaker(component=endpoint)

    async def start(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def call(self, method: str, params: list[Any], *, stage: str = "transport") -> Any:
        """Submit one JSON-RPC call and return its ``result``."""
        if self._session is None:
            await self.start()
        body = json.dumps({"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params})
        headers = {"Content-Type": "application/json"}
        if self._headers_fn is not None:
            headers.update(self._headers_fn(body))

        async def _do_post() -> Any:
            start = time.monotonic()
            async with self._session.post(self.url, data=body, headers=headers) as resp:
                status = resp.status
                raw = await resp.read()
            metrics.RPC_LATENCY_SECONDS.labels(endpoint=self.endpoint, method=method).observe(time.monotonic() - start)
            if status == 429 or status >= 500:
                log.warning("RPC_HTTP_ERROR endpoint=%s method=%s status=%s", self.endpoint, method, status)
                raise _RetryableHttpError(status)
            try:
                payload = json.loads(raw.decode("utf-8"))
            except ValueError as exc:
                # UnicodeDecodeError included
                snippet = raw[:200].decode("utf-8", "replace")
                raise TransportError(f"{method}: malformed response (status {status}): {snippet}", stage=stage) from exc
            return payload

        payload: Any = _MISSING
        last_exc: Exception | None = None
        attempt = 0
        while attempt < self._max_retries:
            attempt += 1
            try:
                payload = await self._breaker.call(_do_post)
                break
            except TransportError:
                metrics.RPC_ERRORS.labels(type="transport").inc()
                raise
            except (aiohttp.ClientError, asyncio.TimeoutError, _RetryableHttpError) as exc:
                last_exc = exc
                metrics.RPC_ERRORS.labels(type="retry").inc()
                log.debug("rpc attempt %d/%d for %s failed: %s", attempt, self._max_retries, method, exc)
                if attempt < self._max_retries:
                    await asyncio.sleep(min(2**attempt, 5) * 0.1)
        if payload is _MISSING:
            metrics.RPC_ERRORS.labels(type="failed").inc()
            raise TransportError(f"{method} failed after {attempt} attempts: {last_exc}", stage=stage) from last_exc

        metrics.RPC_CALLS.labels(endpoint=self.endpoint, method=method).inc()
        if not isinstance(payload, dict):
            raise TransportError(f"{method}: unexpected response shape {type(payload).__name__}", stage=stage)
        if payload.get("error"):
            err = payload.get("error") or {}
            if not isinstance(err, dict):
                err = {"message": str(err)}
            log.warning("RPC_ERROR endpoint=%s method=%s code=%s msg=%s", self.endpoint, method, err.get("code"), err.get("message"))
            metrics.RPC_ERRORS.labels(type="rpc_error").inc()
            raise JsonRpcError(method, err.get("code"), str(err.get("message")), stage=stage)
        if "result" not in payload:
            raise TransportError(f"{method}: response has neither result nor error", stage=stage)
        return payload["result"]


__all__ = ["JsonRpcClient"]
