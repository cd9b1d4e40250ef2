"""
스토어 설정

환경변수 기반 설정 관리.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class StoreSettings:
    """PropertyStore 설정"""

    config_path: str = "config/properties.yaml"

    # 폴링 설정
    poll_interval: float = 1.0  # 파일 수정 시각 확인 주기 (초)
    stop_timeout: float = 2.0  # 자동 리로드 중지 대기 시간 (초)

    # 문자열 값의 ${VAR} / $VAR 치환
    substitute_env: bool = True

    @classmethod
    def from_env(cls, dotenv_path: str | None = ".env") -> "StoreSettings":
        """환경변수에서 설정 로드

        Args:
            dotenv_path: 먼저 읽을 .env 파일 (없으면 무시, None이면 읽지 않음)
        """
        if dotenv_path and Path(dotenv_path).exists():
            load_dotenv(dotenv_path)

        return cls(
            config_path=os.getenv("HOTPROPS_CONFIG_PATH", "config/properties.yaml"),
            poll_interval=float(os.getenv("HOTPROPS_POLL_INTERVAL", "1.0")),
            stop_timeout=float(os.getenv("HOTPROPS_STOP_TIMEOUT", "2.0")),
            substitute_env=_env_bool(os.getenv("HOTPROPS_SUBSTITUTE_ENV", "true")),
        )

    def validate(self, strict: bool = True) -> list[str]:
        """설정값 검증

        Args:
            strict: True면 오류 시 예외 발생, False면 로깅만

        Returns:
            list[str]: 검증 경고/오류 메시지 목록

        Raises:
            ConfigurationError: strict=True이고 오류가 있을 때
        """
        errors = []
        warnings = []

        if not self.config_path:
            errors.append("설정 파일 경로 누락: HOTPROPS_CONFIG_PATH")
        elif not Path(self.config_path).exists():
            warnings.append(f"설정 파일 없음: {self.config_path}")

        if self.poll_interval <= 0:
            errors.append(f"폴링 주기는 0보다 커야 함: {self.poll_interval}초")
        elif self.poll_interval < 0.1:
            warnings.append(f"폴링 주기가 너무 짧음: {self.poll_interval}초")

        if self.stop_timeout <= 0:
            errors.append(f"중지 대기 시간은 0보다 커야 함: {self.stop_timeout}초")

        for warning in warnings:
            logger.warning(f"[Settings] {warning}")

        if errors:
            for error in errors:
                logger.error(f"[Settings] {error}")
            if strict:
                raise ConfigurationError(
                    f"설정 검증 실패: {len(errors)}개 오류\n" + "\n".join(errors)
                )

        return errors + warnings

    @classmethod
    def from_env_validated(cls, strict: bool = True) -> "StoreSettings":
        """환경변수에서 설정 로드 및 검증"""
        settings = cls.from_env()
        settings.validate(strict=strict)
        return settings
