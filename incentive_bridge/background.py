"""Worker pool that runs Slack interaction payloads after the HTTP request returns."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from contextvars import Context, copy_context
from threading import Lock
from typing import Any, Callable

from structlog.contextvars import bind_contextvars

MAX_WORKERS = 4
THREAD_NAME_PREFIX = "incentive-bridge"

_pool_lock = Lock()
_pool: ThreadPoolExecutor | None = None


def _current_pool() -> ThreadPoolExecutor:
    global _pool
    with _pool_lock:
        if _pool is None:
            _pool = ThreadPoolExecutor(max_workers=MAX_WORKERS, thread_name_prefix=THREAD_NAME_PREFIX)
        return _pool


def _worker_context(trace_id: str | None) -> Context:
    context = copy_context()
    if trace_id is not None:
        context.run(bind_contextvars, trace_id=trace_id)
    return context


def run_async(
    func: Callable[..., Any],
    /,
    *args: Any,
    trace_id: str | None = None,
    **kwargs: Any,
) -> Future:
    """Run *func* on the worker pool inside a copy of the caller's structlog context.

    An explicit *trace_id* overrides whatever the caller has bound.
    """

    context = _worker_context(trace_id)
    return _current_pool().submit(context.run, func, *args, **kwargs)


def shutdown(wait: bool = True) -> None:
    """Stop the current pool; the next :func:`run_async` starts a fresh one."""

    global _pool
    with _pool_lock:
        pool, _pool = _pool, None
    if pool is not None:
        pool.shutdown(wait=wait)
