"""Tests for best-effort result handling."""

from __future__ import annotations

from pathlib import Path
import sys

import structlog
from structlog.testing import capture_logs

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

from incentive_bridge.outcomes import BestEffortResult, best_effort  # noqa: E402


def test_best_effort_returns_value_on_success():
    result = best_effort("double", lambda value: value * 2, 21)

    assert result == BestEffortResult(operation="double", value=42)
    assert result.ok is True
    assert result.discard() is None


def test_best_effort_captures_and_logs_failure():
    def explode():
        raise RuntimeError("store down")

    with capture_logs(processors=[structlog.contextvars.merge_contextvars]) as logs:
        result = best_effort("set_pending", explode)

    assert result.ok is False
    assert isinstance(result.error, RuntimeError)
    events = [entry for entry in logs if entry.get("event") == "best_effort_failed"]
    assert events
    assert events[0]["operation"] == "set_pending"
    assert events[0]["error"] == "store down"
    assert events[0]["error_type"] == "RuntimeError"


def test_best_effort_forwards_keyword_arguments():
    captured = {}

    best_effort("capture", lambda **kwargs: captured.update(kwargs), channel="C1", ts="1.2").discard()

    assert captured == {"channel": "C1", "ts": "1.2"}
