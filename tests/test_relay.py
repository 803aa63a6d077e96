import asyncio

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from nft_deck.exceptions import (
    PayloadTooLargeError,
    RelayBlockedError,
    RelayTimeoutError,
    RelayUpstreamError,
)
from nft_deck.relay import MediaRelay
from nft_deck.security import RelayGuard

from fakes import PermissiveGuard

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


async def image(request):
    return web.Response(body=PNG, content_type="image/png")


async def untyped(request):
    response = web.Response(body=b"raw-bytes")
    response.headers.popall("Content-Type", None)
    return response


async def big(request):
    return web.Response(body=b"x" * 4096, content_type="video/mp4")


async def chunked(request):
    response = web.StreamResponse(headers={"Content-Type": "video/mp4"})
    response.enable_chunked_encoding()
    await response.prepare(request)
    for _ in range(8):
        await response.write(b"y" * 512)
    await response.write_eof()
    return response


async def missing(request):
    return web.Response(status=404, text="not here")


async def slow(request):
    await asyncio.sleep(1)
    return web.Response(body=PNG, content_type="image/png")


async def redirect(request):
    raise web.HTTPFound("/image.png")


async def redirect_blocked(request):
    raise web.HTTPFound("/blocked/image.png")


async def redirect_loop(request):
    raise web.HTTPFound("/loop")


@pytest_asyncio.fixture
async def server():
    app = web.Application()
    app.router.add_get("/image.png", image)
    app.router.add_get("/untyped", untyped)
    app.router.add_get("/big", big)
    app.router.add_get("/chunked", chunked)
    app.router.add_get("/missing", missing)
    app.router.add_get("/slow", slow)
    app.router.add_get("/redirect", redirect)
    app.router.add_get("/redirect-blocked", redirect_blocked)
    app.router.add_get("/blocked/image.png", image)
    app.router.add_get("/loop", redirect_loop)
    test_server = TestServer(app)
    await test_server.start_server()
    yield test_server
    await test_server.close()


def url_for(server, path):
    return f"http://{server.host}:{server.port}{path}"


def make_relay(guard=None, **kwargs):
    kwargs.setdefault("timeout", 5)
    kwargs.setdefault("max_bytes", 1024)
    kwargs.setdefault("max_redirects", 3)
    return MediaRelay(guard=guard or PermissiveGuard(), **kwargs)


@pytest.mark.asyncio
async def test_relays_body_and_content_type(server):
    media = await make_relay().fetch(url_for(server, "/image.png"))

    assert media.body == PNG
    assert media.content_type == "image/png"


@pytest.mark.asyncio
async def test_missing_content_type_defaults_to_octet_stream(server):
    media = await make_relay().fetch(url_for(server, "/untyped"))

    assert media.body == b"raw-bytes"
    assert media.content_type == "application/octet-stream"


@pytest.mark.asyncio
async def test_declared_length_over_cap_is_413(server):
    with pytest.raises(PayloadTooLargeError) as exc_info:
        await make_relay().fetch(url_for(server, "/big"))
    assert exc_info.value.status_code == 413


@pytest.mark.asyncio
async def test_chunked_body_over_cap_is_413(server):
    with pytest.raises(PayloadTooLargeError):
        await make_relay().fetch(url_for(server, "/chunked"))


@pytest.mark.asyncio
async def test_chunked_body_under_cap_is_relayed(server):
    media = await make_relay(max_bytes=4096).fetch(url_for(server, "/chunked"))

    assert media.body == b"y" * 4096
    assert media.content_type == "video/mp4"


@pytest.mark.asyncio
async def test_upstream_error_status_is_502(server):
    with pytest.raises(RelayUpstreamError) as exc_info:
        await make_relay().fetch(url_for(server, "/missing"))

    err = exc_info.value
    assert err.status_code == 502
    assert err.upstream_status == 404
    assert err.message == "Upstream returned 404."


@pytest.mark.asyncio
async def test_slow_upstream_is_504(server):
    with pytest.raises(RelayTimeoutError) as exc_info:
        await make_relay(timeout=0.2).fetch(url_for(server, "/slow"))
    assert exc_info.value.status_code == 504


@pytest.mark.asyncio
async def test_redirect_target_is_guarded_and_followed(server):
    guard = PermissiveGuard()

    media = await make_relay(guard).fetch(url_for(server, "/redirect"))

    assert media.body == PNG
    assert guard.checked == [url_for(server, "/redirect"), url_for(server, "/image.png")]


@pytest.mark.asyncio
async def test_redirect_to_blocked_target_is_refused(server):
    with pytest.raises(RelayBlockedError):
        await make_relay().fetch(url_for(server, "/redirect-blocked"))


@pytest.mark.asyncio
async def test_redirect_limit(server):
    guard = PermissiveGuard()

    with pytest.raises(RelayUpstreamError) as exc_info:
        await make_relay(guard, max_redirects=2).fetch(url_for(server, "/loop"))

    assert exc_info.value.upstream_status == 302
    assert len(guard.checked) == 3


@pytest.mark.asyncio
async def test_connection_refused_is_502():
    with pytest.raises(RelayUpstreamError) as exc_info:
        await make_relay().fetch("http://127.0.0.1:1/a.png")
    assert exc_info.value.message == "Upstream fetch failed."


@pytest.mark.asyncio
async def test_real_guard_blocks_before_fetch(server):
    relay = MediaRelay(guard=RelayGuard(), timeout=5, max_bytes=1024)

    with pytest.raises(RelayBlockedError):
        await relay.fetch(url_for(server, "/image.png"))
