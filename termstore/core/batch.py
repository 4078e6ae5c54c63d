"""Batch handle for grouped request execution.

Queryables placed in a batch route their send moment through the batch.
Within one batch:

- Identical reads (same method, URL, pipeline and headers) that are in
  flight at the same time share a single network call; every caller
  receives the same raw response. A read submitted after the earlier one
  finished is sent again.
- Sends are serialized in submission order, so writes enclosed in a batch
  reach the server in the order they were issued.

Writes are never deduplicated, and a write ends sharing for reads submitted
before it.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEDUPLICATED_METHODS = ("GET", "HEAD")

# (method, url, pipeline id, sorted headers)
RequestKey = Tuple[str, str, Optional[int], Tuple[Tuple[str, str], ...]]


@dataclass
class BatchStats:
    """Counters describing what a batch did.

    Attributes:
        requests: Sends submitted to the batch
        sent: Sends that reached the transport
        deduplicated: Sends answered by an earlier identical request
    """
    requests: int = 0
    sent: int = 0
    deduplicated: int = 0


class Batch:
    """Groups invocations so identical reads collapse and sends run in order.

    Example:
        >>> async with Batch() as batch:
        ...     groups = store.groups.in_batch(batch)
        ...     first, second = await asyncio.gather(groups(), groups())
        >>> batch.stats.sent
        1
    """

    def __init__(self, dedupe: bool = True, serialize: bool = True):
        """
        Args:
            dedupe: Share one network call between identical reads
            serialize: Run sends one at a time in submission order
        """
        self.id = uuid.uuid4().hex
        self.dedupe = dedupe
        self.serialize = serialize
        self.stats = BatchStats()
        self._inflight: Dict[RequestKey, asyncio.Future] = {}
        self._tasks: List[asyncio.Future] = []
        self._lock: Optional[asyncio.Lock] = None

    @staticmethod
    def request_key(url: Any, init: Any, pipeline: Any = None) -> Optional[RequestKey]:
        """Key identifying a deduplicable request, None for writes.

        Reads only share a send when they go through the same pipeline with
        the same headers, so callers holding different credentials never
        receive each other's responses.
        """
        method = (getattr(init, "method", "GET") or "GET").upper()
        if method not in DEDUPLICATED_METHODS:
            return None
        headers = getattr(init, "headers", None) or {}
        header_items = tuple(sorted((str(k).lower(), str(v)) for k, v in headers.items()))
        return method, str(url), id(pipeline) if pipeline is not None else None, header_items

    async def submit(self, key: Optional[RequestKey], send: Callable[[], Awaitable[Any]]) -> Any:
        """Execute a send through the batch.

        Args:
            key: Deduplication key from request_key(), None for writes
            send: Zero-argument coroutine function performing the send

        Returns:
            Whatever the send produced (shared between identical reads)
        """
        self.stats.requests += 1

        if key is None:
            # Reads queued before a write must not answer reads issued after it
            self._inflight.clear()
        elif self.dedupe and key in self._inflight:
            self.stats.deduplicated += 1
            logger.debug(f"Batch {self.id[:8]}: reusing in-flight {key[0]} {key[1]}")
            return await asyncio.shield(self._inflight[key])

        task = asyncio.ensure_future(self._run(send))
        self._tasks.append(task)
        if self.dedupe and key is not None:
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))

        return await asyncio.shield(task)

    def _forget(self, key: RequestKey, task: asyncio.Future) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def _run(self, send: Callable[[], Awaitable[Any]]) -> Any:
        if not self.serialize:
            self.stats.sent += 1
            return await send()

        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            self.stats.sent += 1
            return await send()

    async def execute(self) -> None:
        """Wait for every send submitted so far, then reset the batch.

        Raises:
            Exception: The first error raised by any enclosed send
        """
        tasks = list(self._tasks)
        self._tasks.clear()
        self._inflight.clear()

        if not tasks:
            return

        logger.debug(f"Batch {self.id[:8]}: waiting on {len(tasks)} send(s)")
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for outcome in results:
            if isinstance(outcome, BaseException):
                raise outcome

    async def cancel(self) -> None:
        """Cancel every pending send and reset the batch."""
        tasks = list(self._tasks)
        self._tasks.clear()
        self._inflight.clear()

        for task in tasks:
            task.cancel()
        if tasks:
            logger.debug(f"Batch {self.id[:8]}: cancelled {len(tasks)} send(s)")
            await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self) -> Batch:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            await self.execute()
        else:
            await self.cancel()

    def __repr__(self) -> str:
        return (
            f"Batch(id={self.id[:8]}, requests={self.stats.requests}, "
            f"sent={self.stats.sent}, deduplicated={self.stats.deduplicated})"
        )
