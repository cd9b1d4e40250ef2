"""
hotprops

파일 기반 설정 스냅샷 저장소. 수정 시각 폴링으로 백그라운드 핫 리로드를 지원합니다.
"""

from .accessor import TypedAccessor
from .errors import (
    ConfigurationError,
    ListenerError,
    ParseError,
    PropertiesError,
    SourceNotFoundError,
)
from .notifier import ChangeNotifier, Listener
from .scheduler import ReloadScheduler, SchedulerState
from .settings import StoreSettings
from .snapshot import Scalar, Snapshot, SnapshotDiff, diff_snapshots
from .source import ConfigSource, YamlConfigSource
from .store import PropertyStore

__all__ = [
    # Store
    "PropertyStore",
    "ReloadScheduler",
    "SchedulerState",
    "ChangeNotifier",
    "Listener",
    "TypedAccessor",
    # Snapshot
    "Scalar",
    "Snapshot",
    "SnapshotDiff",
    "diff_snapshots",
    # Source
    "ConfigSource",
    "YamlConfigSource",
    # Settings
    "StoreSettings",
    # Errors
    "PropertiesError",
    "SourceNotFoundError",
    "ParseError",
    "ListenerError",
    "ConfigurationError",
]
