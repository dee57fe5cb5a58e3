"""
core/constants.py 테스트

모든 경로가 pathlib.Path 타입이고, 상수가 정상적으로 접근 가능한지 확인
"""

from decimal import Decimal
from pathlib import Path

from core.constants import PROJECT_ROOT, Defaults, Descriptions, Paths, Tolerances


class TestProjectRoot:
    """PROJECT_ROOT 테스트"""

    def test_project_root_is_path(self) -> None:
        assert isinstance(PROJECT_ROOT, Path)

    def test_project_root_is_absolute(self) -> None:
        assert PROJECT_ROOT.is_absolute()

    def test_project_root_contains_core_directory(self) -> None:
        """PROJECT_ROOT에 core 디렉토리가 있는지 확인"""
        assert (PROJECT_ROOT / "core").exists()


class TestPaths:
    """Paths 테스트"""

    def test_all_paths_are_path_type(self) -> None:
        assert isinstance(Paths.CONFIG_DIR, Path)
        assert isinstance(Paths.DATA_DIR, Path)
        assert isinstance(Paths.LOGS_DIR, Path)
        assert isinstance(Paths.SETTINGS_FILE, Path)

    def test_settings_file_location(self) -> None:
        assert Paths.SETTINGS_FILE.parent == Paths.CONFIG_DIR
        assert Paths.SETTINGS_FILE.name == "settings.yaml"

    def test_directories_under_project_root(self) -> None:
        assert Paths.CONFIG_DIR.parent == PROJECT_ROOT
        assert Paths.DATA_DIR.parent == PROJECT_ROOT
        assert Paths.LOGS_DIR.parent == PROJECT_ROOT


class TestDefaults:
    """Defaults 테스트"""

    def test_values(self) -> None:
        assert Defaults.PROFILE == "default"
        assert Defaults.WEB_HOST == "127.0.0.1"
        assert Defaults.WEB_PORT == 8000
        assert Defaults.LOG_LEVEL == "INFO"


class TestTolerances:
    """금액 허용 오차는 Decimal"""

    def test_values(self) -> None:
        assert Tolerances.BALANCE == Decimal("0.01")
        assert Tolerances.ALLOCATION == Decimal("0.001")
        assert Tolerances.EXCESS_PAYMENT == Decimal("0.001")


class TestDescriptions:
    def test_partial_remainder(self) -> None:
        assert Descriptions.PARTIAL_REMAINDER == "(Remaining after partial payment)"
