"""
Dataset lifecycle

- loader.py : GeoJSON files/directories -> ordered Feature list
- store.py  : FeatureStore: immutable features + PointIndex snapshot
- manager.py: DatasetManager: active snapshot, load/publish/reload
- watcher.py: SourceWatcher: polling change notifier driving reloads
"""
from .manager import DatasetManager, ReloadResult
from .store import FeatureStore, to_feature_collection
from .watcher import SourceWatcher

__all__ = ["DatasetManager", "FeatureStore", "ReloadResult", "SourceWatcher", "to_feature_collection"]
