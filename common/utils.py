from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import time


def iso_now_ms() -> str:
    """UTC ISO-8601 timestamp with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(slots=True)
class Stopwatch:
    """
    Wall-clock timer for build/reload diagnostics.

    Usage:
        sw = Stopwatch()
        # work...
        log.info("built", extra={"extra": {"ms": sw.elapsed_ms}})
    """
    _t0: float = field(default_factory=time.perf_counter)

    def restart(self) -> None:
        self._t0 = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._t0) * 1e3
