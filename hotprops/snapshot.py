"""
불변 스냅샷 및 변경 비교

스냅샷은 한 세대(generation)의 설정 전체를 나타내며 생성 후 절대 수정되지 않습니다.
리로드는 스냅샷을 통째로 교체합니다.
"""

import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from .accessor import TypedAccessor

# 스칼라 값: 문자열, 64비트 정수, 실수, 불리언, null
Scalar = Union[str, int, float, bool, None]

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


class Snapshot(Mapping[str, Scalar], TypedAccessor):
    """불변 key → 스칼라 매핑

    생성 시 입력을 복사하므로 원본 dict를 수정해도 영향이 없습니다.
    """

    def __init__(self, data: Mapping[str, Scalar] | None = None):
        self._data: dict[str, Scalar] = dict(data or {})

    def __getitem__(self, key: str) -> Scalar:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def to_dict(self) -> dict[str, Scalar]:
        """방어적 복사본"""
        return dict(self._data)

    def __repr__(self) -> str:
        return f"Snapshot({self._data!r})"


def same_value(a: Scalar, b: Scalar) -> bool:
    """타입까지 일치하는지 비교 (1, 1.0, True 는 서로 다른 값)"""
    if type(a) is not type(b):
        return False
    if isinstance(a, float) and math.isnan(a) and math.isnan(b):
        return True
    return a == b


@dataclass(frozen=True)
class SnapshotDiff:
    """두 스냅샷의 차이"""

    added: frozenset[str] = field(default_factory=frozenset)
    removed: frozenset[str] = field(default_factory=frozenset)
    changed: frozenset[str] = field(default_factory=frozenset)

    def __bool__(self) -> bool:
        return bool(self.added or self.removed or self.changed)

    def summary(self) -> str:
        return f"+{len(self.added)} -{len(self.removed)} ~{len(self.changed)}"


def diff_snapshots(old: Mapping[str, Scalar], new: Mapping[str, Scalar]) -> SnapshotDiff:
    """양방향 전체 비교 (추가, 삭제, 변경 키 모두 포함)"""
    old_keys = set(old)
    new_keys = set(new)
    changed = {
        key for key in old_keys & new_keys if not same_value(old[key], new[key])
    }
    return SnapshotDiff(
        added=frozenset(new_keys - old_keys),
        removed=frozenset(old_keys - new_keys),
        changed=frozenset(changed),
    )
