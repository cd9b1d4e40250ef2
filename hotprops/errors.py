"""
에러 분류

- SourceNotFoundError: 생성 시점, 복구 불가 (스토어 생성 실패)
- ParseError: 리로드 시점, 복구 가능 (이전 스냅샷 유지)
- ListenerError: 리스너 단위로 격리 (로깅만, 리로드 중단 없음)
"""

from typing import Any, Callable


class PropertiesError(Exception):
    """hotprops 기본 에러"""


class SourceNotFoundError(PropertiesError, FileNotFoundError):
    """설정 파일 없음 (생성 시점)"""

    def __init__(self, path: str):
        super().__init__(f"설정 파일 없음: {path}")
        self.path = path


class ParseError(PropertiesError):
    """설정 파일 읽기/파싱 실패"""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class ListenerError(PropertiesError):
    """변경 리스너 실행 실패

    원래 예외는 ``__cause__`` 로 연결됩니다.
    """

    def __init__(self, listener: Callable[..., Any], error: Exception):
        name = getattr(listener, "__qualname__", repr(listener))
        super().__init__(f"리스너 실행 실패: {name} - {type(error).__name__}: {error}")
        self.listener = listener
        self.__cause__ = error


class ConfigurationError(PropertiesError):
    """설정 오류 예외"""

    pass
