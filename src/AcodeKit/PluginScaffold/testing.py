"""Testing utilities for exercising the scaffolder without the network.

Provides a context manager that installs an HTTPX client backed by a mock
transport, plus a helper that builds zip payloads in memory.
"""

from __future__ import annotations

import contextlib
import io
import zipfile
from typing import Iterator, Mapping, Optional, Union

import httpx

from .net import configure_http_client, reset_http_client

__all__ = ["use_mock_http_client", "build_zip", "serve_bytes"]


@contextlib.contextmanager
def use_mock_http_client(transport: httpx.BaseTransport, **client_kwargs) -> Iterator[httpx.Client]:
    """Temporarily install an HTTPX client backed by ``transport``."""

    client_kwargs.setdefault("follow_redirects", True)
    client = httpx.Client(transport=transport, **client_kwargs)
    configure_http_client(client=client)
    try:
        yield client
    finally:
        reset_http_client()
        client.close()


def build_zip(entries: Mapping[str, Optional[Union[bytes, str]]]) -> bytes:
    """Return zip bytes containing ``entries``.

    A ``None`` value (or a name ending in ``/``) produces a directory record.
    """

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries.items():
            if content is None or name.endswith("/"):
                archive.writestr(name if name.endswith("/") else f"{name}/", b"")
            else:
                archive.writestr(name, content)
    return buffer.getvalue()


def serve_bytes(payload: bytes, *, status: int = 200) -> httpx.MockTransport:
    """Mock transport answering every request with ``payload``."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, content=payload, headers={"Content-Type": "application/zip"})

    return httpx.MockTransport(handler)
