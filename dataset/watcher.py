from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from common.logging_setup import get_logger
from dataset.loader import FEATURE_SUFFIXES


log = get_logger("dataset.watcher")

Fingerprint = Tuple[Tuple[str, Optional[int], Optional[int]], ...]


def _stat(p: Path) -> Tuple[str, Optional[int], Optional[int]]:
    try:
        st = p.stat()
    except OSError:
        return (str(p), None, None)
    return (str(p), st.st_mtime_ns, st.st_size)


def fingerprint(sources: Iterable[str]) -> Fingerprint:
    """(path, mtime_ns, size) for every watched file; missing paths map to Nones."""
    entries: List[Tuple[str, Optional[int], Optional[int]]] = []
    for src in sources:
        p = Path(src)
        if p.is_dir():
            for child in sorted(p.rglob("*")):
                if child.is_file() and child.suffix.lower() in FEATURE_SUFFIXES:
                    entries.append(_stat(child))
        else:
            entries.append(_stat(p))
    return tuple(entries)


class SourceWatcher:
    """
    Polls the source files and calls `on_change()` when they change.

    A change fires once the fingerprint has stayed put for `debounce_s`, so an
    editor writing a file in several chunks triggers one reload, not many.

    Usage:
        w = SourceWatcher(["data/features"], lambda: manager.reload(reason="watch"))
        w.start()
        ...
        w.stop()
    """

    def __init__(
        self,
        sources: Iterable[str],
        on_change: Callable[[], object],
        *,
        interval_s: float = 1.0,
        debounce_s: float = 0.25,
    ):
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self.sources = tuple(str(s) for s in sources)
        self.on_change = on_change
        self.interval_s = float(interval_s)
        self.debounce_s = max(0.0, float(debounce_s))

        self._last = fingerprint(self.sources)
        self._pending_since: Optional[float] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # -------- polling --------

    def check(self) -> bool:
        """One poll step. Returns True if on_change() was invoked."""
        fp = fingerprint(self.sources)
        now = time.monotonic()
        if fp != self._last:
            log.info("Source change detected", extra={"extra": {"files": len(fp)}})
            self._last = fp
            self._pending_since = now
        if self._pending_since is None or now - self._pending_since < self.debounce_s:
            return False
        self._pending_since = None
        try:
            self.on_change()
        except Exception:
            log.exception("Change handler failed")
        return True

    def _run(self) -> None:
        while not self._stop.wait(self.interval_s):
            self.check()

    # -------- thread control --------

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "SourceWatcher":
        if self.running:
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="source-watcher", daemon=True)
        self._thread.start()
        log.info("Watching sources", extra={"extra": {"sources": list(self.sources), "interval_s": self.interval_s}})
        return self

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def __enter__(self) -> "SourceWatcher":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.stop()
