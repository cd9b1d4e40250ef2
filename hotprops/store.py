"""
설정 저장소 및 원자적 리로드

설계 원칙:
- 빌드 후 교체: 새 스냅샷을 완성한 뒤 참조 하나만 바꿔 끼움 (빈 맵 노출 없음)
- 리로드는 스토어당 하나씩 직렬화 (asyncio.Lock)
- 읽기는 현재 상태 참조 한 번만 읽으므로 대기하지 않음
- 리로드 실패 시 스냅샷, generation, 수정 시각 모두 그대로 유지

사용법:
    ```python
    store = PropertyStore("config/app.yaml")

    port = store.get_int("database.port", 5432)
    store.add_listener(lambda old, new: print(len(old), len(new)))

    store.start_auto_reload(interval=1.0)
    ...
    await store.stop_auto_reload()
    ```
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .accessor import TypedAccessor
from .errors import ParseError, SourceNotFoundError
from .notifier import ChangeNotifier, Listener
from .scheduler import ReloadScheduler
from .snapshot import Scalar, Snapshot, diff_snapshots
from .source import ConfigSource, YamlConfigSource

if TYPE_CHECKING:
    from .settings import StoreSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _StoreState:
    """한 세대의 스냅샷과 메타데이터 (항상 함께 교체됨)"""

    snapshot: Snapshot
    generation: int
    last_modified_ns: int
    loaded_at: datetime
    load_duration_ms: float


class PropertyStore(TypedAccessor):
    """평탄화된 설정 스냅샷 저장소

    리더는 어느 스레드/태스크에서든 get() 계열을 호출할 수 있고,
    reload()는 직접 호출과 ReloadScheduler 호출이 같은 락을 거칩니다.
    """

    def __init__(
        self,
        path: str | os.PathLike,
        source: ConfigSource | None = None,
        poll_interval: float = 1.0,
        stop_timeout: float = 2.0,
    ):
        """
        Args:
            path: 설정 파일 경로
            source: 설정 로더 (기본값: YamlConfigSource)
            poll_interval: 자동 리로드 기본 폴링 주기 (초)
            stop_timeout: 자동 리로드 중지 시 기본 대기 시간 (초)

        Raises:
            SourceNotFoundError: 설정 파일 없음
            ParseError: 초기 로드 실패
        """
        self._path = str(path)
        self._source: ConfigSource = source if source is not None else YamlConfigSource()
        self.stop_timeout = stop_timeout

        if not Path(self._path).exists():
            logger.error(f"[PropertyStore] 설정 파일 없음: {self._path}")
            raise SourceNotFoundError(self._path)

        self._lock = asyncio.Lock()
        self._notifier = ChangeNotifier()
        self._reload_count = 0
        self._failed_reload_count = 0
        self._listener_failure_count = 0

        last_modified_ns = self._source_mtime_ns()
        started = time.monotonic()
        snapshot = self._load_snapshot()
        self._state = _StoreState(
            snapshot=snapshot,
            generation=1,
            last_modified_ns=last_modified_ns,
            loaded_at=datetime.now(timezone.utc),
            load_duration_ms=(time.monotonic() - started) * 1000,
        )
        self._scheduler = ReloadScheduler(self, poll_interval)

        logger.info(
            f"[PropertyStore] 초기 로드 완료: {Path(self._path).name}, "
            f"{len(snapshot)}개 속성 ({self._state.load_duration_ms:.1f}ms)"
        )

    @classmethod
    def from_settings(
        cls, settings: "StoreSettings", source: ConfigSource | None = None
    ) -> "PropertyStore":
        """StoreSettings로 스토어 생성"""
        return cls(
            settings.config_path,
            source=(
                source
                if source is not None
                else YamlConfigSource(substitute_env=settings.substitute_env)
            ),
            poll_interval=settings.poll_interval,
            stop_timeout=settings.stop_timeout,
        )

    # ------------------------------------------------------------------
    # 읽기
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """속성 조회 (없으면 default)"""
        return self._state.snapshot.get(key, default)

    def has_key(self, key: str) -> bool:
        return key in self._state.snapshot

    def __contains__(self, key: object) -> bool:
        return key in self._state.snapshot

    def size(self) -> int:
        return len(self._state.snapshot)

    def __len__(self) -> int:
        return self.size()

    def all_properties(self) -> dict[str, Scalar]:
        """모든 속성 (방어적 복사본)"""
        return self._state.snapshot.to_dict()

    @property
    def snapshot(self) -> Snapshot:
        """현재 스냅샷 (불변)"""
        return self._state.snapshot

    @property
    def generation(self) -> int:
        return self._state.generation

    @property
    def last_modified_at_source(self) -> int:
        """현재 스냅샷 로드 시점의 파일 수정 시각 (ns)"""
        return self._state.last_modified_ns

    @property
    def loaded_at(self) -> datetime:
        return self._state.loaded_at

    @property
    def path(self) -> str:
        return self._path

    @property
    def scheduler(self) -> ReloadScheduler:
        return self._scheduler

    # ------------------------------------------------------------------
    # 리로드
    # ------------------------------------------------------------------

    async def reload(self) -> bool:
        """설정 파일 리로드

        Returns:
            스냅샷이 실제로 바뀌었으면 True

        Raises:
            ParseError: 읽기/파싱 실패 (현재 스냅샷은 그대로 유지)
        """
        async with self._lock:
            return await self._reload_locked()

    async def reload_if_modified(self) -> bool:
        """파일 수정 시각이 현재 스냅샷보다 새로울 때만 리로드

        수정 시각은 락 안에서 다시 확인하므로, 같은 변경에 대해 대기 중이던
        중복 호출은 아무 일도 하지 않습니다.

        Returns:
            스냅샷이 실제로 바뀌었으면 True

        Raises:
            ParseError: 상태 조회/읽기/파싱 실패
        """
        async with self._lock:
            if self._source_mtime_ns() <= self._state.last_modified_ns:
                return False
            return await self._reload_locked()

    async def _reload_locked(self) -> bool:
        logger.debug(f"[PropertyStore] 리로드 시작: {self._path}")

        started = time.monotonic()
        try:
            last_modified_ns = self._source_mtime_ns()
            snapshot = await self._load_in_thread()
        except ParseError as e:
            self._failed_reload_count += 1
            logger.error(f"[PropertyStore] 리로드 실패: {e}")
            raise
        load_ms = (time.monotonic() - started) * 1000

        previous = self._state
        self._state = _StoreState(
            snapshot=snapshot,
            generation=previous.generation + 1,
            last_modified_ns=last_modified_ns,
            loaded_at=datetime.now(timezone.utc),
            load_duration_ms=load_ms,
        )
        self._reload_count += 1

        diff = diff_snapshots(previous.snapshot, snapshot)
        if not diff:
            logger.debug(
                f"[PropertyStore] 리로드 #{self._reload_count} 완료 ({load_ms:.1f}ms): "
                "변경 없음"
            )
            return False

        logger.info(
            f"[PropertyStore] 리로드 #{self._reload_count} 완료 ({load_ms:.1f}ms): "
            f"{len(snapshot)}개 속성 ({diff.summary()}), "
            f"generation={self._state.generation}"
        )

        failures = await self._notifier.notify(previous.snapshot, snapshot)
        self._listener_failure_count += len(failures)
        return True

    async def _load_in_thread(self) -> Snapshot:
        """워커 스레드에서 로드

        호출자가 취소되어도 스레드는 멈추지 않으므로, 락을 쥔 채 스레드가
        끝날 때까지 기다린 뒤 결과를 버리고 취소를 다시 전달합니다.
        """
        future = asyncio.ensure_future(asyncio.to_thread(self._load_snapshot))
        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError:
            logger.warning(
                f"[PropertyStore] 리로드 취소됨, 진행 중인 로드 완료 대기: {self._path}"
            )
            while not future.done():
                try:
                    await asyncio.wait({future})
                except asyncio.CancelledError:
                    continue
            if not future.cancelled():
                future.exception()
            raise

    def _load_snapshot(self) -> Snapshot:
        """ConfigSource 호출 후 스냅샷 생성

        소스가 ParseError 외의 예외를 던져도 ParseError로 감쌉니다.
        """
        try:
            data = self._source.load(self._path)
        except ParseError:
            raise
        except Exception as e:
            raise ParseError(
                f"설정 로드 실패: {self._path} - {type(e).__name__}: {e}", self._path
            ) from e

        for key in data:
            if not isinstance(key, str) or not key:
                raise ParseError(f"잘못된 키: {key!r} ({self._path})", self._path)

        return Snapshot(data)

    def _source_mtime_ns(self) -> int:
        try:
            return os.stat(self._path).st_mtime_ns
        except OSError as e:
            raise ParseError(
                f"설정 파일 상태 조회 실패: {self._path} - {e}", self._path
            ) from e

    # ------------------------------------------------------------------
    # 리스너 / 자동 리로드
    # ------------------------------------------------------------------

    def add_listener(self, callback: Listener) -> None:
        """변경 리스너 등록"""
        self._notifier.add_listener(callback)

    def remove_listener(self, callback: Listener) -> bool:
        """변경 리스너 해제"""
        return self._notifier.remove_listener(callback)

    def start_auto_reload(self, interval: float | None = None) -> bool:
        """자동 리로드 시작 (이미 실행 중이면 False)"""
        return self._scheduler.start(interval)

    async def stop_auto_reload(self, timeout: float | None = None) -> bool:
        """자동 리로드 중지 (제한 시간 내 종료되면 True)"""
        return await self._scheduler.stop(
            self.stop_timeout if timeout is None else timeout
        )

    def stats(self) -> dict[str, Any]:
        """통계 조회"""
        state = self._state
        return {
            "generation": state.generation,
            "reload_count": self._reload_count,
            "failed_reload_count": self._failed_reload_count,
            "listener_failure_count": self._listener_failure_count,
            "property_count": len(state.snapshot),
            "last_modified_at_source": state.last_modified_ns,
            "loaded_at": state.loaded_at,
            "last_load_duration_ms": state.load_duration_ms,
            "auto_reload_active": self._scheduler.is_running,
            "config_file": str(Path(self._path).absolute()),
        }

    def __repr__(self) -> str:
        return (
            f"PropertyStore[file={Path(self._path).name}, "
            f"properties={self.size()}, generation={self.generation}, "
            f"autoReload={self._scheduler.is_running}]"
        )
