"""
변경 알림

리로드로 스냅샷이 실제로 바뀌었을 때만 등록된 리스너를 등록 순서대로 호출합니다.
리스너 하나의 실패는 로깅만 하고 다음 리스너와 리로드에는 영향을 주지 않습니다.
"""

import inspect
import logging
import threading
from typing import Any, Awaitable, Callable, Union

from .errors import ListenerError
from .snapshot import Snapshot

logger = logging.getLogger(__name__)

# (이전 스냅샷, 새 스냅샷) → None 또는 코루틴
Listener = Callable[[Snapshot, Snapshot], Union[None, Awaitable[Any]]]


class ChangeNotifier:
    """리스너 레지스트리

    전달 중에는 불변 튜플을 순회하고, 등록/해제는 락 안에서 튜플을 교체합니다.
    따라서 전달 도중 등록이 일어나도 진행 중인 순회는 깨지지 않습니다.
    """

    def __init__(self):
        self._listeners: tuple[Listener, ...] = ()
        self._lock = threading.Lock()

    def add_listener(self, callback: Listener) -> None:
        """리스너 등록"""
        with self._lock:
            self._listeners = self._listeners + (callback,)

    def remove_listener(self, callback: Listener) -> bool:
        """리스너 해제 (처음 등록된 하나만)"""
        with self._lock:
            listeners = list(self._listeners)
            if callback not in listeners:
                return False
            listeners.remove(callback)
            self._listeners = tuple(listeners)
            return True

    def __len__(self) -> int:
        return len(self._listeners)

    async def notify(self, old: Snapshot, new: Snapshot) -> list[ListenerError]:
        """리스너 호출

        Args:
            old: 리로드 이전 스냅샷
            new: 리로드 이후 스냅샷

        Returns:
            실패한 리스너 목록 (없으면 빈 리스트)
        """
        failures: list[ListenerError] = []

        for callback in self._listeners:
            try:
                result = callback(old, new)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                error = ListenerError(callback, e)
                logger.error(f"[ChangeNotifier] {error}", exc_info=True)
                failures.append(error)

        return failures
