from __future__ import annotations

import asyncio
import contextlib
import socket
from typing import AsyncIterator, List, Tuple

import aiohttp
import pytest
from aiohttp import web
from blake3 import blake3

from jar_launcher.errors import IntegrityError, NetworkError
from jar_launcher.fetcher import ChunkedFetcher, accumulate_chunks, parse_content_length


def _bytes(data: bytes):
    async def handler(_req: web.Request) -> web.Response:
        return web.Response(body=data)

    return handler


async def _chunks(*parts: bytes) -> AsyncIterator[bytes]:
    for p in parts:
        yield p


def _recorder() -> Tuple[List[Tuple[int, int]], object]:
    samples: List[Tuple[int, int]] = []

    def cb(done: int, total: int) -> None:
        samples.append((done, total))

    return samples, cb


def test_progress_for_two_chunks_of_known_length() -> None:
    samples, cb = _recorder()
    data = asyncio.run(accumulate_chunks(_chunks(b"a" * 500, b"b" * 500), 1000, cb))  # type: ignore[arg-type]
    assert data == b"a" * 500 + b"b" * 500
    assert samples == [(0, 1000), (500, 1000), (1000, 1000)]


def test_unknown_length_grows_buffer_and_reports_zero_total() -> None:
    samples, cb = _recorder()
    data = asyncio.run(accumulate_chunks(_chunks(b"abc", b"", b"def"), 0, cb))  # type: ignore[arg-type]
    assert data == b"abcdef"
    assert samples == [(0, 0), (3, 0), (6, 0)]


def test_body_longer_than_declared_length_fails() -> None:
    with pytest.raises(NetworkError):
        asyncio.run(accumulate_chunks(_chunks(b"x" * 6), 5))


def test_body_shorter_than_declared_length_fails() -> None:
    with pytest.raises(NetworkError, match="short download"):
        asyncio.run(accumulate_chunks(_chunks(b"x" * 4), 5))


def test_missing_progress_callback_is_a_no_op() -> None:
    assert asyncio.run(accumulate_chunks(_chunks(b"xy"), 2, None)) == b"xy"


def test_raising_progress_callback_does_not_break_download() -> None:
    def boom(_done: int, _total: int) -> None:
        raise RuntimeError("sink gone")

    assert asyncio.run(accumulate_chunks(_chunks(b"xy"), 2, boom)) == b"xy"


@pytest.mark.parametrize(
    "raw,expected",
    [("1000", 1000), (" 42 ", 42), (None, 0), ("", 0), ("abc", 0), ("-5", 0), ("0", 0)],
)
def test_parse_content_length(raw, expected) -> None:
    assert parse_content_length(raw) == expected


def test_fetch_known_length_over_http(http_server) -> None:
    data = bytes(range(100))
    srv = http_server({"/client.jar": _bytes(data)})
    samples, cb = _recorder()

    got = asyncio.run(ChunkedFetcher(max_tries=1).fetch(f"{srv.base_url}/client.jar", cb))  # type: ignore[arg-type]

    assert got == data
    assert samples[0] == (0, 100)
    assert samples[-1] == (100, 100)
    assert all(total == 100 for _, total in samples)


def test_fetch_chunked_response_without_content_length(http_server) -> None:
    async def handler(req: web.Request) -> web.StreamResponse:
        resp = web.StreamResponse()
        resp.enable_chunked_encoding()
        await resp.prepare(req)
        await resp.write(b"abc")
        await resp.write(b"def")
        await resp.write_eof()
        return resp

    srv = http_server({"/stream": handler})
    samples, cb = _recorder()

    got = asyncio.run(ChunkedFetcher(max_tries=1).fetch(f"{srv.base_url}/stream", cb))  # type: ignore[arg-type]

    assert got == b"abcdef"
    assert samples[0] == (0, 0)
    assert samples[-1] == (6, 0)


def test_client_error_status_is_not_retried(http_server) -> None:
    state = {"calls": 0}

    async def handler(_req: web.Request) -> web.Response:
        state["calls"] += 1
        return web.Response(status=404, text="nope")

    srv = http_server({"/missing.jar": handler})
    with pytest.raises(NetworkError) as ei:
        asyncio.run(ChunkedFetcher(max_tries=3).fetch(f"{srv.base_url}/missing.jar"))
    assert ei.value.status == 404
    assert state["calls"] == 1


def test_server_error_is_retried(http_server) -> None:
    state = {"calls": 0}

    async def handler(_req: web.Request) -> web.Response:
        state["calls"] += 1
        if state["calls"] == 1:
            return web.Response(status=503)
        return web.Response(body=b"ok-bytes")

    srv = http_server({"/flaky.jar": handler})
    got = asyncio.run(ChunkedFetcher(max_tries=2).fetch(f"{srv.base_url}/flaky.jar"))
    assert got == b"ok-bytes"
    assert state["calls"] == 2


def test_connection_refused_raises_network_error() -> None:
    s = socket.socket()
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    with pytest.raises(NetworkError):
        asyncio.run(ChunkedFetcher(max_tries=1).fetch(f"http://127.0.0.1:{port}/x.jar"))


def test_empty_url_raises_network_error() -> None:
    with pytest.raises(NetworkError):
        asyncio.run(ChunkedFetcher().fetch("  "))


def test_blake3_verification(http_server) -> None:
    data = b"library-bytes"
    srv = http_server({"/lib.jar": _bytes(data)})
    url = f"{srv.base_url}/lib.jar"
    fetcher = ChunkedFetcher(max_tries=1)

    assert asyncio.run(fetcher.fetch(url, expected_blake3=blake3(data).hexdigest().upper())) == data
    with pytest.raises(IntegrityError):
        asyncio.run(fetcher.fetch(url, expected_blake3=blake3(b"other").hexdigest()))


class _Body:
    def __init__(self, parts: Tuple[bytes, ...], fail: bool) -> None:
        self._parts = parts
        self._fail = fail

    async def iter_chunked(self, _n: int) -> AsyncIterator[bytes]:
        for p in self._parts:
            yield p
        if self._fail:
            raise aiohttp.ClientPayloadError("connection dropped mid-body")


class _Resp:
    status = 200

    def __init__(self, body: _Body) -> None:
        self.headers = {"Content-Length": "8"}
        self.content = body

    def raise_for_status(self) -> None:
        return None


class _DroppingSession:
    """First GET dies after half the body; later GETs succeed."""

    def __init__(self) -> None:
        self.calls = 0

    @contextlib.asynccontextmanager
    async def get(self, url: str, headers=None):
        self.calls += 1
        if self.calls == 1:
            yield _Resp(_Body((b"abcd",), fail=True))
        else:
            yield _Resp(_Body((b"abcd", b"efgh"), fail=False))


def test_retry_after_partial_body_does_not_rewind_progress() -> None:
    samples, cb = _recorder()
    session = _DroppingSession()
    got = asyncio.run(ChunkedFetcher(session=session, max_tries=2).fetch("https://x/l.jar", cb))
    assert got == b"abcdefgh"
    assert session.calls == 2
    assert samples == [(0, 8), (4, 8), (8, 8)]
