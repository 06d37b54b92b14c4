"""Tests for the interaction worker pool."""

from __future__ import annotations

from pathlib import Path
import sys

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, get_contextvars
from structlog.testing import capture_logs

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

from incentive_bridge.background import run_async, shutdown  # noqa: E402


def test_run_async_propagates_structlog_context():
    """Trace IDs bound by the webhook or events route reach the worker thread."""

    clear_contextvars()
    bind_contextvars(trace_id="trace-123")
    captured: dict[str, str] = {}

    run_async(lambda: captured.update(get_contextvars())).result(timeout=1)

    assert captured.get("trace_id") == "trace-123"
    clear_contextvars()


def test_run_async_accepts_explicit_trace_id():
    clear_contextvars()
    captured: dict[str, str] = {}

    run_async(lambda: captured.update(get_contextvars()), trace_id="trace-456").result(timeout=1)

    assert captured.get("trace_id") == "trace-456"
    assert "trace_id" not in get_contextvars()


def test_run_async_returns_worker_result():
    future = run_async(lambda record_id: f"handled {record_id}", "rec123")

    assert future.result(timeout=1) == "handled rec123"


def test_background_logs_carry_trace_id():
    clear_contextvars()

    with capture_logs(processors=[structlog.contextvars.merge_contextvars]) as logs:
        run_async(lambda: structlog.get_logger().info("interaction_acknowledged"), trace_id="trace-789").result(
            timeout=1
        )

    assert logs, "expected interaction_acknowledged log to be captured"
    assert logs[0].get("event") == "interaction_acknowledged"
    assert logs[0].get("trace_id") == "trace-789"
    clear_contextvars()


def test_run_async_after_shutdown_starts_a_fresh_pool():
    run_async(lambda: None).result(timeout=1)
    shutdown()

    future = run_async(lambda: "still running")

    assert future.result(timeout=1) == "still running"


def test_shutdown_without_pool_is_harmless():
    shutdown()
    shutdown()
