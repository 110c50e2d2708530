# === NAVMAP v1 ===
# {
#   "module": "AcodeKit.PluginScaffold.net",
#   "purpose": "Provide the shared HTTPX client and the single-shot template archive fetcher",
#   "sections": [
#     {"id": "constants", "name": "Constants & globals", "anchor": "CONST", "kind": "constants"},
#     {"id": "helpers", "name": "Client construction helpers", "anchor": "HELP", "kind": "helpers"},
#     {"id": "api", "name": "Public API", "anchor": "API", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Shared HTTPX client and archive fetcher used by the scaffolder."""

from __future__ import annotations

import contextlib
import logging
import ssl
import threading
import time
from typing import Callable, MutableMapping, Optional

import certifi
import httpx

from .errors import NetworkError, UserConfigError
from .io_safe import sha256_bytes
from .settings import HttpConfiguration, get_default_config

__all__ = [
    "configure_http_client",
    "reset_http_client",
    "get_http_client",
    "fetch_archive",
]

LOGGER = logging.getLogger("AcodeKit.PluginScaffold.net")

# --- Constants & globals -------------------------------------------------------

_CLIENT_LOCK = threading.RLock()
_HTTP_CLIENT: Optional[httpx.Client] = None
_CLIENT_FACTORY: Optional[Callable[[], httpx.Client]] = None

# --- Client construction helpers ----------------------------------------------


def _build_ssl_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.load_verify_locations(certifi.where())
    return context


def _request_hook(request: httpx.Request) -> None:
    meta: MutableMapping[str, object] = request.extensions.setdefault("scaffold_meta", {})  # type: ignore[assignment]
    meta.setdefault("start_time", time.perf_counter())


def _response_hook(response: httpx.Response) -> None:
    meta = response.request.extensions.get("scaffold_meta") or {}
    start = meta.get("start_time") if isinstance(meta, MutableMapping) else None
    elapsed = time.perf_counter() - start if isinstance(start, (int, float)) else None
    LOGGER.debug(
        "template-http-response",
        extra={
            "stage": "download",
            "extra_fields": {
                "url": str(response.request.url),
                "status": response.status_code,
                "elapsed_sec": elapsed,
            },
        },
    )


def _timeout_for(config: HttpConfiguration) -> httpx.Timeout:
    return httpx.Timeout(config.timeout_sec, connect=config.connect_timeout_sec)


def _build_http_client(config: HttpConfiguration) -> httpx.Client:
    try:
        transport = httpx.HTTPTransport(
            verify=_build_ssl_context(),
            http2=config.http2_enabled,
            retries=0,
        )
    except ImportError as exc:
        raise UserConfigError(
            "http2_enabled requires the h2 package; install acode-plugin-kit[http2] "
            "or set http.http2_enabled to false"
        ) from exc
    return httpx.Client(
        transport=transport,
        timeout=_timeout_for(config),
        follow_redirects=True,
        max_redirects=config.max_redirects,
        trust_env=True,
        headers={"User-Agent": config.user_agent},
        event_hooks={"request": [_request_hook], "response": [_response_hook]},
    )


def _close_client_unlocked() -> None:
    global _HTTP_CLIENT
    if _HTTP_CLIENT is not None:
        with contextlib.suppress(Exception):
            _HTTP_CLIENT.close()
    _HTTP_CLIENT = None


# --- Public API ----------------------------------------------------------------


def configure_http_client(
    client: Optional[httpx.Client] = None,
    *,
    factory: Optional[Callable[[], httpx.Client]] = None,
) -> None:
    """Override the shared HTTPX client or register a factory for tests."""

    if client is not None and factory is not None:
        raise ValueError("provide either a client or factory, not both")

    global _HTTP_CLIENT, _CLIENT_FACTORY
    with _CLIENT_LOCK:
        if client is None:
            _close_client_unlocked()
        elif _HTTP_CLIENT is not client:
            _close_client_unlocked()
            _HTTP_CLIENT = client
        _CLIENT_FACTORY = factory


def reset_http_client() -> None:
    """Drop the shared client and any registered factory."""

    global _CLIENT_FACTORY
    with _CLIENT_LOCK:
        _CLIENT_FACTORY = None
        _close_client_unlocked()


def get_http_client(config: Optional[HttpConfiguration] = None) -> httpx.Client:
    """Return the shared HTTPX client, creating it if necessary."""

    global _HTTP_CLIENT
    with _CLIENT_LOCK:
        if _HTTP_CLIENT is not None:
            return _HTTP_CLIENT
        if _CLIENT_FACTORY is not None:
            candidate = _CLIENT_FACTORY()
            if not isinstance(candidate, httpx.Client):
                raise TypeError("client factory must return an httpx.Client")
            _HTTP_CLIENT = candidate
            return candidate
        _HTTP_CLIENT = _build_http_client(config or get_default_config().http)
        return _HTTP_CLIENT


def fetch_archive(
    url: str,
    *,
    config: Optional[HttpConfiguration] = None,
    client: Optional[httpx.Client] = None,
    correlation_id: Optional[str] = None,
) -> bytes:
    """Download ``url`` in one GET and return the complete response body.

    Redirects are followed.  No retry is attempted: connection, DNS, timeout,
    redirect-loop, and non-success status failures all raise
    :class:`NetworkError` straight away.
    """

    http_config = config or get_default_config().http
    http = client or get_http_client(http_config)
    extra = {"stage": "download", "correlation_id": correlation_id}

    LOGGER.info("downloading template archive", extra={**extra, "extra_fields": {"url": url}})
    try:
        response = http.get(
            url,
            headers=http_config.request_headers(correlation_id=correlation_id),
            follow_redirects=True,
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise NetworkError(
            f"Server rejected template download from {url} (HTTP {status})",
            url=url,
            status_code=status,
        ) from exc
    except httpx.TimeoutException as exc:
        raise NetworkError(f"Timed out downloading template from {url}", url=url) from exc
    except httpx.TooManyRedirects as exc:
        raise NetworkError(f"Too many redirects while downloading {url}", url=url) from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise NetworkError(f"Unable to download template from {url}: {exc}", url=url) from exc

    payload = response.content
    LOGGER.info(
        "downloaded template archive",
        extra={
            **extra,
            "extra_fields": {
                "url": str(response.url),
                "bytes": len(payload),
                "sha256": sha256_bytes(payload),
            },
        },
    )
    return payload
