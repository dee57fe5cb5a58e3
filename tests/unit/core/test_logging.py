"""
core/logging.py 테스트

프로세스별 로그 파일 경로와 핸들러 구성 확인
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from core.constants import Paths
from core.logging import LOG_FILE_BACKUP_COUNT, NOISY_LOGGERS, get_log_file_path, setup_logging


@pytest.fixture
def restore_root_logger():
    """테스트 후 setup_logging이 추가한 핸들러 제거"""
    root = logging.getLogger()
    before = set(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


class TestGetLogFilePath:
    def test_default_dir(self) -> None:
        assert get_log_file_path("web") == Paths.LOGS_DIR / "web" / "web.log"

    def test_custom_dir(self, temp_dir: Path) -> None:
        assert get_log_file_path("check_integrity", temp_dir) == temp_dir / "check_integrity" / "check_integrity.log"


class TestSetupLogging:
    def test_handlers(self, temp_dir: Path, restore_root_logger) -> None:
        root = setup_logging("web", console_level=logging.WARNING, file_level=logging.DEBUG, logs_dir=temp_dir)

        file_handlers = [h for h in root.handlers if isinstance(h, TimedRotatingFileHandler)]
        stream_handlers = [h for h in root.handlers if type(h) is logging.StreamHandler]

        assert len(file_handlers) == 1
        assert len(stream_handlers) == 1
        assert file_handlers[0].level == logging.DEBUG
        assert file_handlers[0].backupCount == LOG_FILE_BACKUP_COUNT
        assert stream_handlers[0].level == logging.WARNING
        assert (temp_dir / "web" / "web.log").exists()

    def test_repeated_setup_replaces_handlers(self, temp_dir: Path, restore_root_logger) -> None:
        setup_logging("web", logs_dir=temp_dir)
        root = setup_logging("web", logs_dir=temp_dir)

        assert len(root.handlers) == 2

    def test_writes_to_file(self, temp_dir: Path, restore_root_logger) -> None:
        root = setup_logging("check_integrity", logs_dir=temp_dir)
        logging.getLogger("core.ledger.integrity").info("잔액 검사")
        for handler in root.handlers:
            handler.flush()

        content = (temp_dir / "check_integrity" / "check_integrity.log").read_text(encoding="utf-8")
        assert "잔액 검사" in content
        assert "core.ledger.integrity" in content

    def test_noisy_loggers_quieted(self, temp_dir: Path, restore_root_logger) -> None:
        setup_logging("web", logs_dir=temp_dir)

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
