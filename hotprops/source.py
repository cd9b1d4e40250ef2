"""
설정 소스

ConfigSource는 파일 경로를 받아 평탄화된 key → 스칼라 매핑을 반환하거나
ParseError를 발생시킵니다. 스토어는 파일 문법이나 평탄화 방식에 관여하지 않습니다.

YamlConfigSource 예시:

    ```yaml
    database:
      host: localhost
      pool:
        max_size: 20
    ```

    → {"database.host": "localhost", "database.pool.max_size": 20}
"""

import logging
import os
import re
from datetime import date, datetime
from typing import Any, Protocol

import yaml

from .errors import ParseError
from .snapshot import INT64_MAX, INT64_MIN, Scalar

logger = logging.getLogger(__name__)

# ${VAR_NAME} / $VAR_NAME
_ENV_BRACED = re.compile(r"\$\{([^}]+)\}")
_ENV_BARE = re.compile(r"\$([A-Z_][A-Z0-9_]*)")


class ConfigSource(Protocol):
    """설정 로더 인터페이스

    같은 파일 내용에 대해 항상 같은 결과를 반환해야 합니다.
    """

    def load(self, path: str) -> dict[str, Scalar]:
        ...


class YamlConfigSource:
    """YAML(및 JSON) 파일을 점(.) 구분 키로 평탄화하여 로드"""

    def __init__(self, substitute_env: bool = True):
        """
        Args:
            substitute_env: 문자열 값의 환경변수 참조 치환 여부
        """
        self.substitute_env = substitute_env

    def load(self, path: str) -> dict[str, Scalar]:
        """설정 파일 로드

        Args:
            path: 설정 파일 경로

        Returns:
            평탄화된 key → 스칼라 매핑

        Raises:
            ParseError: 파일 읽기 실패, YAML 문법 오류, 지원하지 않는 값
        """
        try:
            with open(path, encoding="utf-8") as f:
                raw_config = yaml.safe_load(f)
        except OSError as e:
            raise ParseError(f"설정 파일 읽기 실패: {path} - {e}", path) from e
        except yaml.YAMLError as e:
            raise ParseError(f"YAML 파싱 실패: {path} - {e}", path) from e

        if raw_config is None:
            return {}
        if not isinstance(raw_config, dict):
            raise ParseError(
                f"최상위 값은 매핑이어야 함: {path} ({type(raw_config).__name__})",
                path,
            )

        flat: dict[str, Scalar] = {}
        self._flatten(raw_config, "", flat, path)
        logger.debug(f"[YamlConfigSource] 로드 완료: {path}, {len(flat)}개 키")
        return flat

    def _flatten(
        self, node: dict[Any, Any], prefix: str, out: dict[str, Scalar], path: str
    ) -> None:
        for raw_key, value in node.items():
            key = str(raw_key)
            if not key:
                raise ParseError(f"빈 키: {prefix or '(최상위)'} ({path})", path)
            full_key = f"{prefix}.{key}" if prefix else key

            if isinstance(value, dict):
                self._flatten(value, full_key, out, path)
                continue

            # 중첩 경로와 점이 포함된 키가 같은 키로 평탄화되는 경우
            if full_key in out:
                raise ParseError(f"중복 키: {full_key} ({path})", path)
            out[full_key] = self._to_scalar(full_key, value, path)

    def _to_scalar(self, key: str, value: Any, path: str) -> Scalar:
        if value is None or isinstance(value, (bool, float)):
            return value
        if isinstance(value, int):
            if not INT64_MIN <= value <= INT64_MAX:
                raise ParseError(f"64비트 범위를 벗어난 정수: {key}={value}", path)
            return value
        if isinstance(value, str):
            return self._substitute_env_vars(value) if self.substitute_env else value
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        raise ParseError(
            f"지원하지 않는 값 타입: {key} ({type(value).__name__})", path
        )

    @staticmethod
    def _substitute_env_vars(value: str) -> str:
        """${VAR_NAME} 또는 $VAR_NAME 형식을 환경변수 값으로 치환

        설정되지 않은 변수는 그대로 둡니다.
        """

        def replace(match: re.Match) -> str:
            return os.getenv(match.group(1), match.group(0))

        result = _ENV_BRACED.sub(replace, value)
        return _ENV_BARE.sub(replace, result)
