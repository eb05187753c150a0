from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import AsyncIterator, Optional

import aiohttp
import backoff
from blake3 import blake3

from .errors import IntegrityError, NetworkError
from .progress import ProgressCallback, notify_progress

logger = logging.getLogger(__name__)


def parse_content_length(raw: Optional[str]) -> int:
    """Content-Length as an int; absent, negative or non-numeric values mean unknown (0)."""
    try:
        n = int((raw or "").strip())
    except ValueError:
        return 0
    return n if n > 0 else 0


async def accumulate_chunks(
    chunks: AsyncIterator[bytes],
    total: int,
    on_progress: Optional[ProgressCallback] = None,
    *,
    url: Optional[str] = None,
) -> bytes:
    """
    Collect a response body, reporting (downloaded, total) progress.

    Emits (0, total) once up front and one sample per non-empty chunk. A known
    `total` pre-sizes the buffer and must match the received length exactly;
    total == 0 grows the buffer chunk by chunk.
    """
    notify_progress(on_progress, 0, total)

    if total <= 0:
        grown = bytearray()
        async for chunk in chunks:
            if not chunk:
                continue
            grown += chunk
            notify_progress(on_progress, len(grown), 0)
        return bytes(grown)

    buf = bytearray(total)
    pos = 0
    async for chunk in chunks:
        if not chunk:
            continue
        end = pos + len(chunk)
        if end > total:
            raise NetworkError(f"download exceeded declared length {total}", url=url)
        buf[pos:end] = chunk
        pos = end
        notify_progress(on_progress, pos, total)
    if pos != total:
        raise NetworkError(f"short download (expected {total}, got {pos})", url=url)
    return bytes(buf)


def _is_retryable(e: Exception) -> bool:
    if isinstance(e, IntegrityError):
        return False
    status = getattr(e, "status", None)
    return status is None or status >= 500


def _monotonic_progress(cb: Optional[ProgressCallback]) -> Optional[ProgressCallback]:
    """Drop samples that do not advance past the highest one reported, so a retry never rewinds."""
    if cb is None:
        return None
    high = -1

    def _report(downloaded: int, total: int) -> None:
        nonlocal high
        if downloaded <= high:
            return
        high = downloaded
        notify_progress(cb, downloaded, total)

    return _report


class ChunkedFetcher:
    """
    HTTP GET with incremental byte progress. Touches no filesystem.

    Transport failures and 5xx responses are retried with exponential backoff;
    everything surfaces as NetworkError. `timeout_s=None` means no timeout.
    Progress across retries is monotonic: (0, total) is reported once per fetch
    and a restarted attempt stays silent until it passes the earlier high mark.
    """

    DEFAULT_CHUNK_SIZE = 1 << 16

    def __init__(
        self,
        *,
        timeout_s: Optional[float] = None,
        max_tries: int = 3,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._max_tries = max(1, int(max_tries))
        self._chunk_size = max(1, int(chunk_size))
        self._session = session

    async def fetch(
        self,
        url: str,
        on_progress: Optional[ProgressCallback] = None,
        *,
        expected_blake3: str = "",
    ) -> bytes:
        url = (url or "").strip()
        if not url:
            raise NetworkError("empty url")

        fetch_with_retry = backoff.on_exception(
            backoff.expo,
            NetworkError,
            max_tries=self._max_tries,
            giveup=lambda e: not _is_retryable(e),
            logger=logger,
        )(self._fetch_once)
        data = await fetch_with_retry(url, _monotonic_progress(on_progress))

        want = (expected_blake3 or "").strip().lower()
        if want:
            got = blake3(data).hexdigest()
            if got != want:
                raise IntegrityError(f"blake3 mismatch for {url} (expected {want}, got {got})", url=url)
        return data

    @contextlib.asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[aiohttp.ClientSession]:
        if self._session is not None:
            yield self._session
            return
        timeout = aiohttp.ClientTimeout(total=self._timeout_s)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            yield session

    async def _fetch_once(self, url: str, on_progress: Optional[ProgressCallback]) -> bytes:
        # Identity encoding keeps the body length equal to Content-Length.
        headers = {"Accept-Encoding": "identity"}
        try:
            async with self._session_scope() as session:
                async with session.get(url, headers=headers) as resp:
                    resp.raise_for_status()
                    if resp.content is None:
                        raise NetworkError(f"GET {url} returned no body", url=url, status=resp.status)
                    total = parse_content_length(resp.headers.get("Content-Length"))
                    return await accumulate_chunks(
                        resp.content.iter_chunked(self._chunk_size), total, on_progress, url=url
                    )
        except NetworkError:
            raise
        except aiohttp.ClientResponseError as e:
            raise NetworkError(f"GET {url} failed: {e.status} {e.message}", url=url, status=e.status) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"GET {url} failed: {e!r}", url=url) from e
