"""Explicit results for advisory writes whose failure must not change the workflow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import structlog


@dataclass(frozen=True)
class BestEffortResult:
    operation: str
    value: Any = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def discard(self) -> None:
        """Drop the outcome; failures were already logged by :func:`best_effort`."""

        return None


def best_effort(operation: str, func: Callable[..., Any], /, *args: Any, **kwargs: Any) -> BestEffortResult:
    """Run *func* once, logging instead of raising when it fails."""

    try:
        value = func(*args, **kwargs)
    except Exception as exc:
        structlog.get_logger().warning(
            "best_effort_failed",
            operation=operation,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return BestEffortResult(operation=operation, error=exc)
    return BestEffortResult(operation=operation, value=value)
