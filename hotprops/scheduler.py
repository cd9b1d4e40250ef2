"""
파일 수정 시각 폴링 기반 자동 리로드

스토어마다 하나의 백그라운드 태스크와 중지 신호(asyncio.Event)를 가집니다.
대기 중인 sleep은 stop() 즉시 깨어나며, 진행 중인 리로드는 끝날 때까지 기다립니다.

사용법:
    ```python
    scheduler = ReloadScheduler(store, interval=1.0)
    scheduler.start()

    # 앱 종료 시
    await scheduler.stop(timeout=2.0)
    ```
"""

import asyncio
import logging
import os
from enum import Enum
from typing import TYPE_CHECKING

from .errors import ParseError

if TYPE_CHECKING:
    from .store import PropertyStore

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    """스케줄러 상태"""

    STOPPED = "stopped"
    RUNNING = "running"


class ReloadScheduler:
    """자동 리로드 스케줄러

    start/stop 모두 멱등입니다. 이벤트 루프 안에서 호출해야 합니다.
    """

    def __init__(self, store: "PropertyStore", interval: float = 1.0):
        """
        Args:
            store: 리로드 대상 PropertyStore
            interval: 기본 폴링 주기 (초)
        """
        self.store = store
        self.interval = interval
        self._state = SchedulerState.STOPPED
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SchedulerState.RUNNING

    def start(self, interval: float | None = None) -> bool:
        """폴링 시작

        Args:
            interval: 폴링 주기 (초). None이면 생성 시 지정한 값

        Returns:
            새로 시작했으면 True, 이미 실행 중이면 False

        Raises:
            ValueError: interval <= 0
            RuntimeError: 실행 중인 이벤트 루프 없음
        """
        if self._state is SchedulerState.RUNNING:
            logger.info("[ReloadScheduler] 자동 리로드 이미 실행 중")
            return False

        interval = self.interval if interval is None else interval
        if interval <= 0:
            raise ValueError(f"폴링 주기는 0보다 커야 함: {interval}")

        loop = asyncio.get_running_loop()
        self.interval = interval
        # 태스크마다 자기 중지 신호를 가짐 (stop 직후 start 해도 이전 태스크와 섞이지 않음)
        stop_event = asyncio.Event()
        self._stop_event = stop_event
        self._state = SchedulerState.RUNNING
        self._task = loop.create_task(
            self._poll_loop(stop_event, interval),
            name=f"ReloadScheduler-{os.path.basename(self.store.path)}",
        )

        logger.info(f"[ReloadScheduler] 자동 리로드 시작 (주기: {interval}초)")
        return True

    async def stop(self, timeout: float = 2.0) -> bool:
        """폴링 중지

        Args:
            timeout: 태스크 종료 대기 시간 (초)

        Returns:
            태스크가 제한 시간 안에 종료되었거나 이미 중지 상태면 True
        """
        if self._state is SchedulerState.STOPPED:
            return True

        self._state = SchedulerState.STOPPED
        task, stop_event = self._task, self._stop_event
        self._task = None
        self._stop_event = None
        stop_event.set()

        done, _ = await asyncio.wait({task}, timeout=timeout)
        if not done:
            logger.warning(
                f"[ReloadScheduler] {timeout}초 안에 종료되지 않음 "
                "(진행 중인 리로드 완료 후 종료됨)"
            )
            return False

        logger.info("[ReloadScheduler] 자동 리로드 중지")
        return True

    async def _poll_loop(self, stop_event: asyncio.Event, interval: float) -> None:
        """폴링 루프

        파일 수정 시각이 스토어의 last_modified_at_source 보다 새로우면 리로드합니다.
        리로드 실패 시 수정 시각이 갱신되지 않으므로 다음 주기에 자연스럽게 재시도됩니다.
        """
        while not stop_event.is_set():
            try:
                await self._check_once()
            except Exception as e:
                logger.error(f"[ReloadScheduler] 폴링 루프 에러: {e}", exc_info=True)

            if stop_event.is_set():
                break

            # 중지 신호로 즉시 깨어나는 sleep
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

        logger.debug("[ReloadScheduler] 폴링 루프 종료")

    async def _check_once(self) -> None:
        try:
            current_ns = os.stat(self.store.path).st_mtime_ns
        except OSError as e:
            logger.warning(f"[ReloadScheduler] 설정 파일 상태 조회 실패: {e}")
            return

        if current_ns <= self.store.last_modified_at_source:
            return

        logger.info(f"[ReloadScheduler] 설정 변경 감지: {self.store.path}")
        try:
            await self.store.reload_if_modified()
        except ParseError as e:
            logger.error(f"[ReloadScheduler] 리로드 실패 (다음 주기에 재시도): {e}")
