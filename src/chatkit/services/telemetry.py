"""Span instrumentation around asynchronous session work."""

from __future__ import annotations

import contextlib
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterator

from .logging import StructuredLogger


@dataclass
class TelemetrySpan:
    """Data captured for a single span."""

    name: str
    start_time: float
    metadata: Dict[str, Any]
    outcome: str | None = None

    def mark(self, outcome: str) -> None:
        self.outcome = outcome


@contextlib.contextmanager
def telemetry_span(logger: StructuredLogger, name: str, **metadata: Any) -> Iterator[TelemetrySpan]:
    """Log span start/finish, with the outcome the body recorded via ``mark``."""

    start = time.perf_counter()
    logger.debug("telemetry.span.start", span=name, **metadata)
    span = TelemetrySpan(name=name, start_time=start, metadata=metadata)
    try:
        yield span
    except Exception as error:
        logger.error("telemetry.span.error", span=name, error=str(error), **metadata)
        raise
    finally:
        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "telemetry.span.finish",
            span=name,
            duration_ms=duration_ms,
            outcome=span.outcome or "unknown",
            **metadata,
        )
