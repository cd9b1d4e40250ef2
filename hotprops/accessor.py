"""
타입 변환 조회

get(key, default) 위에 얹는 얇은 읽기 계층.
저장된 값의 타입이 요청 타입과 맞지 않으면 예외 대신 default를 반환합니다.
"""

import math
from typing import Any

_INT32_RANGE = 1 << 32
_INT64_RANGE = 1 << 64


def _is_number(value: Any) -> bool:
    """bool은 숫자로 취급하지 않음"""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _wrap(value: int, bits_range: int) -> int:
    """부호 있는 정수 범위로 축소 (2의 보수 래핑)"""
    value %= bits_range
    if value >= bits_range // 2:
        value -= bits_range
    return value


class TypedAccessor:
    """타입별 getter 믹스인

    하위 클래스는 ``get(key, default)`` 를 제공해야 합니다.
    """

    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def get_string(self, key: str, default: str | None = None) -> str | None:
        value = self.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """32비트 정수로 조회 (소수점 이하 버림)"""
        value = self._get_integral(key)
        return default if value is None else _wrap(value, _INT32_RANGE)

    def get_long(self, key: str, default: int | None = None) -> int | None:
        """64비트 정수로 조회 (소수점 이하 버림)"""
        value = self._get_integral(key)
        return default if value is None else _wrap(value, _INT64_RANGE)

    def get_double(self, key: str, default: float | None = None) -> float | None:
        value = self.get(key)
        return float(value) if _is_number(value) else default

    def get_boolean(self, key: str, default: bool | None = None) -> bool | None:
        value = self.get(key)
        return value if isinstance(value, bool) else default

    def _get_integral(self, key: str) -> int | None:
        value = self.get(key)
        if not _is_number(value):
            return None
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return int(value)
