"""
설정 로더

settings.yaml 로드 및 프로필별 DB 경로 결정
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from core.constants import PROJECT_ROOT, Defaults, Paths

# 프로필 환경변수 (설정 파일의 profile보다 우선)
PROFILE_ENV_VAR = "LEDGER_PROFILE"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class AppConfig:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    profile: str
    data_dir: Path
    web_host: str
    web_port: int
    log_level: str

    @property
    def log_level_value(self) -> int:
        """logging 모듈 레벨 값"""
        return getattr(logging, self.log_level)


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def load_config(path: Path | None = None) -> AppConfig:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppConfig 인스턴스

    Raises:
        SettingsLoadError: 파일이 없거나 형식이 잘못된 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        raise SettingsLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        raise SettingsLoadError("settings.yaml이 비어 있습니다")
    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    profile = os.environ.get(PROFILE_ENV_VAR) or data.get("profile") or Defaults.PROFILE

    data_dir = Path(data.get("data_dir") or Paths.DATA_DIR)
    if not data_dir.is_absolute():
        data_dir = PROJECT_ROOT / data_dir

    web_config = data.get("web") or {}
    web_host = web_config.get("host", Defaults.WEB_HOST)
    try:
        web_port = int(web_config.get("port", Defaults.WEB_PORT))
    except (TypeError, ValueError) as e:
        raise SettingsLoadError(
            f"settings.yaml의 web.port가 숫자가 아닙니다: {web_config.get('port')!r}"
        ) from e

    logging_config = data.get("logging") or {}
    log_level = str(logging_config.get("level", Defaults.LOG_LEVEL)).upper()
    if log_level not in _LOG_LEVELS:
        raise SettingsLoadError(
            f"유효하지 않은 로그 레벨입니다: '{log_level}'. 유효한 값: {list(_LOG_LEVELS)}"
        )

    return AppConfig(
        profile=profile,
        data_dir=data_dir,
        web_host=web_host,
        web_port=web_port,
        log_level=log_level,
    )


def get_db_path(config: AppConfig) -> Path:
    """프로필에 따른 DB 경로 반환

    Args:
        config: AppConfig 인스턴스

    Returns:
        DB 파일 경로 (data/profiles/<profile>.db)

    Raises:
        ValueError: 프로필 이름이 유효하지 않은 경우
    """
    from adapters.db.sqlite_adapter import get_db_path as profile_db_path

    return profile_db_path(config.profile, config.data_dir)


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: AppConfig | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._config is None:
            type(self)._config = load_config(settings_path)

    @property
    def config(self) -> AppConfig:
        assert self._config is not None
        return self._config

    @property
    def profile(self) -> str:
        """현재 프로필"""
        return self.config.profile

    @property
    def web_host(self) -> str:
        return self.config.web_host

    @property
    def web_port(self) -> int:
        return self.config.web_port

    @property
    def log_level(self) -> int:
        """logging 레벨 값"""
        return self.config.log_level_value

    @property
    def db_path(self) -> Path:
        """현재 프로필의 DB 경로"""
        return get_db_path(self.config)

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
