"""Observability helpers for instrumenting external service calls."""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Callable, ParamSpec, TypeVar

from closet_app.logging_config import ensure_correlation_id, get_logger, log_event

LOGGER = get_logger(__name__)
P = ParamSpec("P")
R = TypeVar("R")


def instrument_call(service: str, operation: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Wrap a client method to emit structured start, completion and failure logs.

    When the wrapped call returns a ``CallOutcome`` its soft failure reason is
    logged as well, so degraded calls are visible without raising.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            correlation_id = ensure_correlation_id()
            start = time.perf_counter()
            log_event(
                LOGGER,
                logging.INFO,
                "external_call_started",
                service=service,
                operation=operation,
                correlation_id=correlation_id,
            )
            try:
                result = func(*args, **kwargs)
            except Exception:
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                log_event(
                    LOGGER,
                    logging.ERROR,
                    "external_call_failed",
                    service=service,
                    operation=operation,
                    correlation_id=correlation_id,
                    duration_ms=duration_ms,
                    exc_info=True,
                )
                raise
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            failure = getattr(result, "failure", None)
            log_event(
                LOGGER,
                logging.WARNING if failure is not None else logging.INFO,
                "external_call_degraded" if failure is not None else "external_call_completed",
                service=service,
                operation=operation,
                correlation_id=correlation_id,
                duration_ms=duration_ms,
                reason=getattr(failure, "reason", None),
            )
            return result

        return wrapper

    return decorator


__all__ = ["instrument_call"]
