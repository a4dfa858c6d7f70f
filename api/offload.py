"""
api/offload.py -- Bounded worker pool for Argon2 work.

Argon2id hashing and key derivation each take tens of milliseconds of CPU
and ~64 MiB of memory. Route handlers are async, so running them inline
would stall every other request on the event loop; running them on the
default thread pool without a bound would let a burst of logins allocate
gigabytes at once.

run_cpu_bound() sends the call to a worker thread through anyio, gated by a
single process-wide CapacityLimiter sized from Settings.hash_workers. argon2
releases the GIL while it computes, so threads give real parallelism here.

There is no cancellation hook: if the client disconnects, the call still
runs to completion. Every call is bounded by fixed cost parameters.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Callable, TypeVar

import anyio
import anyio.to_thread

T = TypeVar("T")

_limiter: anyio.CapacityLimiter | None = None


def configure(workers: int) -> None:
    """Size the pool. Called once from the app lifespan."""
    global _limiter
    _limiter = anyio.CapacityLimiter(workers)


async def run_cpu_bound(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run func(*args, **kwargs) in a worker thread under the shared limit."""
    if _limiter is None:
        configure(1)
    return await anyio.to_thread.run_sync(partial(func, *args, **kwargs), limiter=_limiter)
