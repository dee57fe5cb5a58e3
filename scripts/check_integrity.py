"""
Ledger 잔액 무결성 검사

계좌 가용 잔액과 소속 봉투 가용 잔액 합계가 일치하는지 확인.
--repair 지정 시 미배정 봉투가 없는 계좌에 미배정 봉투를 먼저 생성한다.

사용법:
    python -m scripts.check_integrity
    python -m scripts.check_integrity --profile household --repair

종료 코드:
    0: 불일치 없음
    1: 불일치 계좌 존재
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter, get_db_path, init_schema
from core.config.loader import load_config
from core.ledger.integrity import IntegrityValidator
from core.ledger.lifecycle import AccountLifecycle
from core.ledger.store import LedgerStore
from core.logging import setup_logging

logger = logging.getLogger("check_integrity")


async def main(profile: str | None, settings_path: Path | None, repair: bool = False) -> int:
    """무결성 검사 실행

    Args:
        profile: 검사할 프로필 (None이면 설정 파일/환경변수의 프로필)
        settings_path: settings.yaml 경로 (None이면 기본 경로)
        repair: 미배정 봉투 복구 여부

    Returns:
        종료 코드
    """
    config = load_config(settings_path)
    db_path = get_db_path(profile or config.profile, config.data_dir)
    logger.info(f"=== 무결성 검사 시작: {db_path} ===")

    if not db_path.exists():
        logger.error(f"DB 파일이 존재하지 않습니다: {db_path}")
        return 1

    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)
        store = LedgerStore(db)

        if repair:
            result = await AccountLifecycle(store).create_missing_unassigned_envelopes()
            logger.info(f"미배정 봉투 생성: {len(result.created)}개")
            for error in result.errors:
                logger.error(f"복구 실패: {error}")

        discrepancies = await IntegrityValidator(store).validate()

    if not discrepancies:
        logger.info("모든 계좌 잔액 일치 ✓")
        return 0

    for d in discrepancies:
        logger.warning(
            f"  [{d.account_id}] {d.account_name}: "
            f"계좌 {d.account_balance} / 봉투 합계 {d.envelope_sum} (차이 {d.difference})"
        )
    logger.error(f"불일치 계좌 {len(discrepancies)}개")
    return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Ledger 잔액 무결성 검사")
    parser.add_argument(
        "--profile",
        default=None,
        help="검사할 프로필 (기본: settings.yaml 또는 LEDGER_PROFILE)",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="settings.yaml 경로",
    )
    parser.add_argument(
        "--repair",
        action="store_true",
        help="미배정 봉투가 없는 계좌에 미배정 봉투 생성",
    )
    args = parser.parse_args()

    setup_logging("check_integrity")
    sys.exit(asyncio.run(main(args.profile, args.settings, args.repair)))
