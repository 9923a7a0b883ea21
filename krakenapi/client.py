"""Asynchronous dispatcher sending :class:`KrakenInput` requests to Kraken.

A :class:`KrakenClient` turns a request descriptor into one HTTP call, signs it
when the endpoint is private, and unwraps the ``{"error": [...], "result": ...}``
envelope. Success returns the result decoded into the caller's output type;
any failure raises :class:`~krakenapi.errors.KrakenErrors` holding every error
in order. The client keeps no per-call state and can be shared between tasks.
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Type, TypeVar

import requests

from krakenapi.api.inputs import KrakenInput
from krakenapi.auth import KrakenAuth
from krakenapi.errors import (
    ErrorKind,
    KrakenError,
    KrakenErrors,
    MissingNonceError,
    MissingResultError,
    TransportError,
    generate_errors,
)

T = TypeVar("T")

DEFAULT_URL = "https://api.kraken.com"
DEFAULT_VERSION = "0"
DEFAULT_USER_AGENT = "krakenapi/0.1 (Python Kraken Client)"
DEFAULT_TIMEOUT_SECONDS = 10.0
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass
class HttpRequest:
    """Transport-level view of a single call."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None


class Transport(Protocol):
    """Minimal HTTP contract: send a request, get the raw body back.

    Implementations raise :class:`~krakenapi.errors.TransportError` when the
    exchange could not be completed. ``send`` may be a coroutine function.
    """

    def send(self, request: HttpRequest) -> bytes:
        ...


class RequestsTransport:
    """Blocking transport backed by a shared :class:`requests.Session`."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds
        self.logger = logger or logging.getLogger(__name__)

    def send(self, request: HttpRequest) -> bytes:
        try:
            response = self.session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.body,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{request.method} {request.url} failed: {exc}", cause=exc) from exc
        if response.status_code >= 400:
            self.logger.debug(
                "HTTP %s from %s", response.status_code, request.url,
                extra={"event": "http_status", "status_code": response.status_code},
            )
        return response.content


class KrakenClient:
    """Client for the Kraken REST API.

    Public endpoints only need a client built without credentials. Dispatching
    a private input with missing or malformed credentials raises
    :class:`~krakenapi.errors.InvalidSecretKeyError`.
    """

    def __init__(
        self,
        api_key: str = "",
        api_secret: str = "",
        url: str = DEFAULT_URL,
        version: str = DEFAULT_VERSION,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[Transport] = None,
        metrics_callback: Optional[Callable[[str, Dict[str, float]], None]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.version = version
        self.user_agent = user_agent
        self.auth = KrakenAuth(api_key, api_secret)
        self.transport = transport or RequestsTransport()
        self.metrics_callback = metrics_callback
        self.logger = logger or logging.getLogger(__name__)

    def set_auth(self, api_key: str, api_secret: str) -> None:
        """Replace the credentials used for private endpoints."""

        self.auth = KrakenAuth(api_key, api_secret)

    async def send(self, request: KrakenInput, output: Type[T]) -> T:
        """Execute ``request`` and decode its result into ``output``.

        Raises :class:`KrakenErrors` for transport, parse and exchange errors.
        No retries are attempted; a retried private call needs a fresh nonce.
        """

        http_request = self.build_request(request)
        self.logger.debug(
            "Sending %s %s", http_request.method, request.endpoint,
            extra={"event": "request", "endpoint": request.endpoint, "category": str(request.category)},
        )
        start = time.monotonic()
        try:
            body = await self._call_transport(http_request)
            result = self._unwrap(body)
            decoded = decode_result(output, result)
        except (KrakenErrors, MissingResultError) as exc:
            self._record(request, start, exc)
            raise
        self._record(request, start, None)
        return decoded

    def build_request(self, request: KrakenInput) -> HttpRequest:
        """Build the HTTP request for ``request``, signing it when private."""

        path = request.path(self.version)
        params = request.serialized_params()
        headers = {"User-Agent": self.user_agent, "Content-Type": FORM_CONTENT_TYPE}

        if not request.is_private:
            url = f"{self.url}{path}"
            if params:
                url = f"{url}?{params}"
            return HttpRequest(method="GET", url=url, headers=headers)

        nonce = request.params.get("nonce") if request.params is not None else None
        if not nonce:
            raise MissingNonceError(f"private endpoint {request.endpoint} requires a nonce parameter")
        headers["API-Key"] = self.auth.api_key
        headers["API-Sign"] = self.auth.sign(path, nonce, params)
        return HttpRequest(
            method="POST",
            url=f"{self.url}{path}",
            headers=headers,
            body=(params or "").encode("utf-8"),
        )

    async def _call_transport(self, request: HttpRequest) -> bytes:
        try:
            if inspect.iscoroutinefunction(self.transport.send):
                return await self.transport.send(request)
            return await asyncio.to_thread(self.transport.send, request)
        except (TransportError, OSError, asyncio.TimeoutError) as exc:
            message = str(exc) or type(exc).__name__
            raise KrakenErrors([KrakenError(ErrorKind.HTTP_ERROR, message, cause=exc)]) from exc

    def _unwrap(self, body: bytes) -> Any:
        try:
            envelope = json.loads(body)
        except (UnicodeDecodeError, ValueError, RecursionError) as exc:
            raise _parse_failure(f"response is not valid JSON: {exc}", exc) from exc

        if not isinstance(envelope, dict):
            raise _parse_failure("response envelope is not an object")
        raw_errors = envelope.get("error") or []
        if not isinstance(raw_errors, list):
            raise _parse_failure("response envelope 'error' is not a list")

        if raw_errors:
            raise generate_errors(raw_errors)

        result = envelope.get("result")
        if result is None:
            raise MissingResultError("response carried neither errors nor a result")
        return result

    def _record(self, request: KrakenInput, start: float, failure: Optional[Exception]) -> None:
        latency_ms = (time.monotonic() - start) * 1000.0
        if failure is None:
            self.logger.debug(
                "%s succeeded in %.1fms", request.endpoint, latency_ms,
                extra={"event": "request_ok", "endpoint": request.endpoint, "latency_ms": latency_ms},
            )
            error_count = 0
        else:
            if isinstance(failure, KrakenErrors):
                kinds = [kind.name for kind in failure.kinds]
            else:
                kinds = [type(failure).__name__]
            self.logger.warning(
                "%s failed: %s", request.endpoint, failure,
                extra={
                    "event": "request_failed",
                    "endpoint": request.endpoint,
                    "latency_ms": latency_ms,
                    "kinds": kinds,
                },
            )
            error_count = len(kinds)
        self._emit_metrics(request.endpoint, {"latency_ms": latency_ms, "errors": float(error_count)})

    def _emit_metrics(self, name: str, values: Dict[str, float]) -> None:
        if not self.metrics_callback:
            return
        try:
            self.metrics_callback(name, values)
        except Exception as exc:  # pragma: no cover - external callback safety
            self.logger.debug("Metric callback failed for %s: %s", name, exc)


def decode_result(output: Type[T], result: Any) -> T:
    """Decode the envelope's ``result`` into ``output``.

    Types with a ``from_result`` classmethod decode themselves; plain
    dataclasses are built from keyword arguments; builtin containers and
    scalars must already have the right JSON shape.
    """

    try:
        from_result = getattr(output, "from_result", None)
        if from_result is not None:
            return from_result(result)
        if dataclasses.is_dataclass(output):
            if not isinstance(result, Mapping):
                raise TypeError(f"expected an object for {output.__name__}, got {type(result).__name__}")
            return output(**result)
        if isinstance(output, type) and not isinstance(result, output):
            raise TypeError(f"expected {output.__name__}, got {type(result).__name__}")
        return result
    except (TypeError, ValueError, KeyError) as exc:
        raise _parse_failure(f"result does not match {getattr(output, '__name__', output)}: {exc}", exc) from exc


def _parse_failure(message: str, cause: Optional[BaseException] = None) -> KrakenErrors:
    return KrakenErrors([KrakenError(ErrorKind.PARSE_ERROR, message, cause=cause)])


__all__ = [
    "KrakenClient",
    "HttpRequest",
    "Transport",
    "RequestsTransport",
    "decode_result",
    "DEFAULT_URL",
    "DEFAULT_VERSION",
]
