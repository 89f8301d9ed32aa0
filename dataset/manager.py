from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Sequence

from common.errors import DatasetUnavailableError, IngestionError
from common.logging_setup import get_logger
from common.utils import Stopwatch
from dataset.loader import ON_ERROR_POLICIES, load_features
from dataset.store import FeatureStore
from pointindex import DEFAULT_LEAF_SIZE


log = get_logger("dataset.manager")


@dataclass(frozen=True)
class ReloadResult:
    """Outcome of one load+publish cycle, as reported to the trigger."""
    ok: bool
    reason: str
    features: int = 0
    version: int = 0
    elapsed_ms: float = 0.0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class DatasetManager:
    """
    Owns the active FeatureStore and swaps it on reload.

    The reference is read and written under `_ref_lock`, held only for the
    single read or assignment. Readers call current() once per request and
    keep the snapshot; stores are immutable so nothing else needs locking.
    `_reload_lock` serialises rebuilds; a build in progress never blocks readers.
    """

    def __init__(
        self,
        sources: Sequence[str],
        *,
        leaf_size: int = DEFAULT_LEAF_SIZE,
        on_error: str = "fail",
    ):
        if on_error not in ON_ERROR_POLICIES:
            raise ValueError(f"on_error must be one of {ON_ERROR_POLICIES}, got {on_error!r}")
        self.sources = tuple(str(s) for s in sources)
        self.leaf_size = int(leaf_size)
        self.on_error = on_error

        self._ref_lock = threading.Lock()
        self._reload_lock = threading.Lock()
        self._store: Optional[FeatureStore] = None
        self._version = 0
        self._last_result: Optional[ReloadResult] = None

    # -------- snapshot access --------

    def current(self) -> FeatureStore:
        with self._ref_lock:
            store = self._store
        if store is None:
            raise DatasetUnavailableError("no dataset has been loaded yet")
        return store

    @property
    def has_dataset(self) -> bool:
        with self._ref_lock:
            return self._store is not None

    @property
    def last_result(self) -> Optional[ReloadResult]:
        return self._last_result

    # -------- lifecycle --------

    def load(self) -> FeatureStore:
        """Read all sources and build a fresh store. Does not publish."""
        features, files = load_features(self.sources, on_error=self.on_error)
        return FeatureStore.build(features, leaf_size=self.leaf_size, sources=[str(p) for p in files])

    def publish(self, store: FeatureStore) -> FeatureStore:
        """Stamp the next version on `store` and make it the active dataset."""
        with self._ref_lock:
            self._version += 1
            stamped = store.with_version(self._version)
            self._store = stamped
        return stamped

    def initialize(self) -> FeatureStore:
        """
        First load at startup. Unlike reload(), failures propagate: there is
        no previous dataset to fall back to.
        """
        with self._reload_lock:
            sw = Stopwatch()
            store = self.publish(self.load())
            self._last_result = ReloadResult(
                ok=True, reason="startup", features=len(store), version=store.version, elapsed_ms=sw.elapsed_ms
            )
        log.info("Dataset loaded", extra={"extra": self._last_result.to_dict()})
        return store

    def reload(self, reason: str = "manual") -> ReloadResult:
        """
        Rebuild from the original sources and publish on success.

        On IngestionError the previous store stays active and the failure is
        returned (and logged), not raised.
        """
        with self._reload_lock:
            sw = Stopwatch()
            try:
                store = self.publish(self.load())
            except IngestionError as e:
                result = ReloadResult(ok=False, reason=reason, elapsed_ms=sw.elapsed_ms, error=str(e))
                self._last_result = result
                log.error("Reload failed; keeping previous dataset", extra={"extra": result.to_dict()})
                return result
            result = ReloadResult(
                ok=True, reason=reason, features=len(store), version=store.version, elapsed_ms=sw.elapsed_ms
            )
            self._last_result = result
        log.info("Dataset reloaded", extra={"extra": result.to_dict()})
        return result
