import asyncio
from dataclasses import dataclass
from itertools import islice
from typing import AsyncIterator, Awaitable, Callable, Iterable, Iterator, List, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from catalog.base import RemoteRejectionError
from pipeline.errors import RemoteTimeoutError

T = TypeVar("T")


def _transient(exc: BaseException) -> bool:
    if isinstance(exc, RemoteRejectionError):
        return exc.transient
    return isinstance(exc, httpx.TransportError)


@dataclass(frozen=True)
class RetryPolicy:
    """How often a single remote call is attempted. One attempt means no retry."""

    max_attempts: int = 1
    backoff_seconds: float = 1.0

    async def call(self, fn: Callable[[], Awaitable[T]]) -> T:
        if self.max_attempts <= 1:
            return await fn()
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=self.backoff_seconds * 30),
            retry=retry_if_exception(_transient),
            reraise=True,
        ):
            with attempt:
                return await fn()


async def await_with_timeout(aw: Awaitable[T], timeout: float, operation: str) -> T:
    try:
        return await asyncio.wait_for(aw, timeout)
    except asyncio.TimeoutError as e:
        raise RemoteTimeoutError(operation, timeout) from e


async def dispatch_chunk(
    calls: List[Callable[[], Awaitable[T]]],
    timeout: float,
    operation: str,
) -> List[T]:
    """
    Start every call of the chunk at once, then wait for all of them under
    a single timeout. The first failure in dispatch order is raised after
    the others have settled.
    """
    if not calls:
        return []
    results = await await_with_timeout(
        asyncio.gather(*(c() for c in calls), return_exceptions=True),
        timeout,
        operation,
    )
    for r in results:
        if isinstance(r, BaseException):
            raise r
    return results


def chunked(items: Iterable[T], size: int) -> Iterator[List[T]]:
    it = iter(items)
    while True:
        chunk = list(islice(it, size))
        if not chunk:
            return
        yield chunk


async def achunked(items: AsyncIterator[T], size: int) -> AsyncIterator[List[T]]:
    chunk: List[T] = []
    async for item in items:
        chunk.append(item)
        if len(chunk) >= size:
            yield chunk
            chunk = []
    if chunk:
        yield chunk
