"""Archive download behaviour and shared HTTP client management."""

from __future__ import annotations

import httpx
import pytest

from AcodeKit.PluginScaffold import net as net_mod
from AcodeKit.PluginScaffold.errors import NetworkError, UserConfigError
from AcodeKit.PluginScaffold.net import (
    configure_http_client,
    fetch_archive,
    get_http_client,
    reset_http_client,
)
from AcodeKit.PluginScaffold.settings import HttpConfiguration
from AcodeKit.PluginScaffold.testing import serve_bytes, use_mock_http_client

URL = "https://github.com/Acode-Foundation/acode-plugin/archive/refs/heads/main.zip"


def test_fetch_returns_complete_body(wrapped_archive: bytes) -> None:
    with use_mock_http_client(serve_bytes(wrapped_archive)):
        assert fetch_archive(URL) == wrapped_archive


def test_fetch_sends_identifying_headers() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.headers)
        return httpx.Response(200, content=b"zip")

    with use_mock_http_client(httpx.MockTransport(handler)):
        fetch_archive(URL, correlation_id="abc123")

    assert seen["user-agent"].startswith("acode-plugin-kit/")
    assert seen["x-request-id"] == "abc123"


def test_fetch_follows_redirects(wrapped_archive: bytes) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "github.com":
            return httpx.Response(
                302,
                headers={"Location": "https://codeload.github.com/Acode-Foundation/acode-plugin/zip/refs/heads/main"},
            )
        return httpx.Response(200, content=wrapped_archive)

    with use_mock_http_client(httpx.MockTransport(handler)):
        assert fetch_archive(URL) == wrapped_archive


@pytest.mark.parametrize("status", [404, 500])
def test_fetch_non_success_status_raises(status: int) -> None:
    with use_mock_http_client(serve_bytes(b"nope", status=status)):
        with pytest.raises(NetworkError) as excinfo:
            fetch_archive(URL)

    assert excinfo.value.status_code == status
    assert excinfo.value.url == URL
    assert str(status) in str(excinfo.value)


def test_fetch_connection_failure_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Name or service not known", request=request)

    with use_mock_http_client(httpx.MockTransport(handler)):
        with pytest.raises(NetworkError) as excinfo:
            fetch_archive("https://unreachable.invalid/archive.zip")

    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_fetch_timeout_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with use_mock_http_client(httpx.MockTransport(handler)):
        with pytest.raises(NetworkError, match="Timed out"):
            fetch_archive(URL)


def test_fetch_redirect_loop_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"Location": str(request.url)})

    with use_mock_http_client(httpx.MockTransport(handler), max_redirects=3):
        with pytest.raises(NetworkError, match="redirects"):
            fetch_archive(URL)


def test_fetch_makes_a_single_attempt() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503)

    with use_mock_http_client(httpx.MockTransport(handler)):
        with pytest.raises(NetworkError):
            fetch_archive(URL)

    assert len(calls) == 1


def test_fetch_accepts_explicit_client(wrapped_archive: bytes) -> None:
    with httpx.Client(transport=serve_bytes(wrapped_archive)) as client:
        assert fetch_archive(URL, client=client) == wrapped_archive


def test_get_http_client_is_shared() -> None:
    first = get_http_client()
    assert get_http_client() is first
    assert first.follow_redirects is True
    assert first.timeout.connect == HttpConfiguration().connect_timeout_sec

    reset_http_client()
    assert get_http_client() is not first


def test_configure_http_client_factory_is_used_once() -> None:
    built = []

    def factory() -> httpx.Client:
        client = httpx.Client(transport=serve_bytes(b""))
        built.append(client)
        return client

    configure_http_client(factory=factory)
    assert get_http_client() is built[0]
    assert get_http_client() is built[0]
    assert len(built) == 1


def test_configure_http_client_rejects_client_and_factory() -> None:
    client = httpx.Client()
    try:
        with pytest.raises(ValueError):
            configure_http_client(client=client, factory=lambda: client)
    finally:
        client.close()


def test_factory_must_return_httpx_client() -> None:
    configure_http_client(factory=lambda: object())  # type: ignore[arg-type,return-value]
    with pytest.raises(TypeError):
        get_http_client()


def test_response_hook_records_elapsed_time(caplog) -> None:
    request = httpx.Request("GET", URL)
    net_mod._request_hook(request)
    response = httpx.Response(200, request=request)

    with caplog.at_level("DEBUG", logger="AcodeKit.PluginScaffold.net"):
        net_mod._response_hook(response)

    record = next(r for r in caplog.records if r.getMessage() == "template-http-response")
    assert record.extra_fields["status"] == 200
    assert record.extra_fields["elapsed_sec"] >= 0


def test_http2_without_h2_is_a_configuration_error(monkeypatch) -> None:
    def missing_h2(*args, **kwargs):
        raise ImportError("Using http2=True, but the 'h2' package is not installed.")

    monkeypatch.setattr(net_mod.httpx, "HTTPTransport", missing_h2)
    config = HttpConfiguration(http2_enabled=True)

    with pytest.raises(UserConfigError, match=r"acode-plugin-kit\[http2\]"):
        fetch_archive(URL, config=config)
    assert net_mod._HTTP_CLIENT is None
