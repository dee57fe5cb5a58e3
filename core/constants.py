"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    PROFILE: str = "default"

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # 프로필별 DB 디렉토리 (data/profiles/<profile>.db)
    PROFILES_DIR_NAME: str = "profiles"


class Tolerances:
    """금액 비교 허용 오차"""

    BALANCE: Decimal = Decimal("0.01")  # 계좌 잔액 == 봉투 합계
    ALLOCATION: Decimal = Decimal("0.001")  # 배분 합계 == 결제 총액
    EXCESS_PAYMENT: Decimal = Decimal("0.001")  # 초과 결제 보고 기준


class Descriptions:
    """자동 생성 거래 설명 문구"""

    OPENING_BALANCE: str = "Opening balance"
    ENVELOPE_TRANSFER: str = "Envelope transfer"
    ACCOUNT_TRANSFER: str = "Account transfer"
    INITIAL_FUNDING: str = "Initial funding"
    PARTIAL_REMAINDER: str = "(Remaining after partial payment)"
