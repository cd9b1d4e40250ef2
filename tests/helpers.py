"""
테스트 헬퍼
"""

import asyncio
import os
import threading
import time
from pathlib import Path
from typing import Any, Callable

import yaml

from hotprops import YamlConfigSource

BASE_CONFIG = {"a": {"b": 1, "c": "x"}}


def write_yaml(path: str | Path, data: Any, newer_than_ns: int | None = None) -> None:
    """YAML 파일 작성

    newer_than_ns가 주어지면 수정 시각을 그보다 확실히 뒤로 설정합니다.
    (파일 시스템 시각 해상도가 낮아도 폴링 테스트가 안정적이도록)
    """
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f)
    if newer_than_ns is not None:
        bump_mtime(path, newer_than_ns)


def write_text(path: str | Path, text: str, newer_than_ns: int | None = None) -> None:
    """원시 텍스트 작성 (잘못된 YAML 테스트용)"""
    Path(path).write_text(text, encoding="utf-8")
    if newer_than_ns is not None:
        bump_mtime(path, newer_than_ns)


def bump_mtime(path: str | Path, newer_than_ns: int) -> None:
    mtime_ns = newer_than_ns + 2_000_000_000
    os.utime(path, ns=(mtime_ns, mtime_ns))


async def wait_until(predicate: Callable[[], bool], timeout: float = 3.0) -> bool:
    """조건이 참이 될 때까지 대기"""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return predicate()


class CountingSource(YamlConfigSource):
    """load 호출 횟수와 동시 실행 수를 기록하는 소스"""

    def __init__(self, delay: float = 0.0):
        super().__init__()
        self.delay = delay
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def load(self, path: str):
        with self._lock:
            self.calls += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            return super().load(path)
        finally:
            with self._lock:
                self.active -= 1


