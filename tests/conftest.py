from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional

import pytest
from aiohttp import web


@dataclass
class _Server:
    base_url: str
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    runner: web.AppRunner


def _start_server(routes: Dict[str, Callable]) -> _Server:
    loop = asyncio.new_event_loop()
    runner: Optional[web.AppRunner] = None
    base_url: Dict[str, str] = {}
    ready = threading.Event()

    def run() -> None:
        nonlocal runner
        asyncio.set_event_loop(loop)

        async def _run() -> None:
            nonlocal runner
            app = web.Application()
            for path, handler in routes.items():
                app.router.add_route("*", path, handler)
            runner = web.AppRunner(app)
            await runner.setup()
            site = web.TCPSite(runner, "127.0.0.1", 0)
            await site.start()
            port = list(site._server.sockets)[0].getsockname()[1]  # type: ignore[attr-defined]
            base_url["v"] = f"http://127.0.0.1:{port}"

        loop.run_until_complete(_run())
        ready.set()
        loop.run_forever()

    t = threading.Thread(target=run, daemon=True)
    t.start()
    assert ready.wait(timeout=10)
    assert runner is not None
    return _Server(base_url=base_url["v"], thread=t, loop=loop, runner=runner)


def _stop_server(srv: _Server) -> None:
    fut = asyncio.run_coroutine_threadsafe(srv.runner.cleanup(), srv.loop)
    fut.result(timeout=5)
    srv.loop.call_soon_threadsafe(srv.loop.stop)
    srv.thread.join(timeout=5)


@pytest.fixture
def http_server() -> Iterator[Callable[[Dict[str, Callable]], _Server]]:
    started: List[_Server] = []

    def _factory(routes: Dict[str, Callable]) -> _Server:
        srv = _start_server(routes)
        started.append(srv)
        return srv

    yield _factory
    for srv in started:
        _stop_server(srv)

