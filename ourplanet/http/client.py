# ourplanet/http/client.py

import asyncio
import json
from typing import Any, Awaitable, Dict, TypeVar

import aiohttp

from ourplanet.errors import InvalidJSON
from ourplanet.http.headers import build_headers
from ourplanet.logging.logger import setup_logger

log = setup_logger(__name__)

T = TypeVar("T")


async def fetch_json(
    session: aiohttp.ClientSession,
    url: str,
    headers: Dict[str, str] | None = None,
    *,
    timeout_s: float = 30,
) -> Dict[str, Any]:
    """
    GET ``url`` once and decode a JSON object.

    Transport failures (``aiohttp.ClientError``, ``asyncio.TimeoutError``)
    propagate. A body that is not a JSON object raises ``InvalidJSON``.
    """
    timeout = aiohttp.ClientTimeout(total=timeout_s)

    async with session.get(url, headers=headers or build_headers(), timeout=timeout) as resp:
        resp.raise_for_status()
        body = await resp.read()
        charset = resp.charset or "utf-8"

    log.debug("Fetched %d bytes from %s (status=%d)", len(body), url, resp.status)

    try:
        data = json.loads(body.decode(charset))
    except (ValueError, LookupError) as e:
        raise InvalidJSON(url) from e

    if not isinstance(data, dict):
        raise InvalidJSON(url)

    return data


async def limited(sem: asyncio.Semaphore, coro: Awaitable[T]) -> T:
    log.debug("Waiting for semaphore (value=%s)", getattr(sem, "_value", "?"))

    try:
        await sem.acquire()
    except asyncio.CancelledError:
        # cancelled while queued: the wrapped coroutine never started
        if asyncio.iscoroutine(coro):
            coro.close()
        raise

    log.debug("Semaphore acquired (value=%s)", getattr(sem, "_value", "?"))
    try:
        return await coro
    finally:
        sem.release()
        log.debug("Semaphore released (value=%s)", getattr(sem, "_value", "?"))
