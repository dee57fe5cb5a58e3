"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
CLI/스크립트와 Web이 같은 프로필 DB에 동시에 접근 가능하도록 설정.

주의: SQLite alias로 date, count 사용 금지 (예약어)
"""

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.constants import Defaults, Paths

logger = logging.getLogger(__name__)

# 프로필 이름: 영문/숫자/하이픈/언더스코어만 허용 (경로 탈출 방지)
_PROFILE_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def get_db_path(profile: str = Defaults.PROFILE, data_dir: Path | str | None = None) -> Path:
    """프로필에 따른 DB 경로 반환

    Args:
        profile: 프로필 이름 (각 프로필은 독립된 DB 파일)
        data_dir: 데이터 디렉토리 (None이면 Paths.DATA_DIR)

    Returns:
        DB 파일 경로 (data/profiles/<profile>.db)

    Raises:
        ValueError: 프로필 이름이 유효하지 않은 경우
    """
    if not profile or not _PROFILE_NAME_RE.match(profile):
        raise ValueError(f"Invalid profile name: {profile!r}")

    base_dir = Path(data_dir) if data_dir is not None else Paths.DATA_DIR
    return base_dir / Paths.PROFILES_DIR_NAME / f"{profile}.db"


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    # isolation_level=None: 암묵적 BEGIN 없음, 트랜잭션은 SQLiteAdapter.transaction()만 연다
    if readonly:
        conn = await aiosqlite.connect(f"file:{db_path_str}?mode=ro", uri=True, isolation_level=None)
    else:
        conn = await aiosqlite.connect(db_path_str, isolation_level=None)

    await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기

    # 외래 키 제약 활성화 (ON DELETE CASCADE 동작에 필요)
    await conn.execute("PRAGMA foreign_keys=ON")

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    재진입 가능한 트랜잭션 컨텍스트 매니저 제공.

    하나의 어댑터를 여러 코루틴이 공유할 수 있다.
    가장 바깥 transaction()은 어댑터 잠금을 잡고 BEGIN IMMEDIATE를 실행하며,
    중첩 깊이는 ContextVar로 추적하므로 잠금을 소유한 태스크(와 그 자식)만 합류한다.
    다른 코루틴의 transaction()은 앞선 트랜잭션이 끝날 때까지 대기한다.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부 (Web 조회용)

    사용 예시:
    ```python
    adapter = SQLiteAdapter(get_db_path("default"))
    await adapter.connect()

    async with adapter.transaction():
        await adapter.execute("INSERT INTO ...")
        async with adapter.transaction():  # 중첩 시 바깥 트랜잭션에 합류
            await adapter.execute("UPDATE ...")

    await adapter.close()
    ```
    """

    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None
        self._tx_lock = asyncio.Lock()
        self._tx_depth: ContextVar[int] = ContextVar(f"sqlite_tx_depth_{id(self)}", default=0)

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """현재 태스크가 transaction() 블록 내부인지 여부"""
        return self._tx_depth.get() > 0

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path, self.readonly)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if parameters:
            return await self._conn.execute(sql, parameters)
        return await self._conn.execute(sql)

    async def executemany(
        self,
        sql: str,
        parameters: list[tuple[Any, ...]],
    ) -> aiosqlite.Cursor:
        """SQL 다중 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        return await self._conn.executemany(sql, parameters)

    async def insert(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> int:
        """INSERT 실행 후 생성된 rowid 반환"""
        cursor = await self.execute(sql, parameters)
        row_id = cursor.lastrowid
        await cursor.close()
        return row_id

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchall()

    async def fetchone_dict(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> dict[str, Any] | None:
        """단일 행을 컬럼명 dict로 조회"""
        cursor = await self.execute(sql, parameters)
        row = await cursor.fetchone()
        if row is None:
            return None
        columns = [desc[0] for desc in cursor.description]
        return dict(zip(columns, row))

    async def fetchall_dict(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[dict[str, Any]]:
        """전체 행을 컬럼명 dict 리스트로 조회"""
        cursor = await self.execute(sql, parameters)
        rows = await cursor.fetchall()
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in rows]

    async def commit(self) -> None:
        """커밋

        열린 transaction()이 있으면 (어느 태스크든) 그 블록이 커밋하므로 아무것도 하지 않는다.
        """
        if self._conn is not None and not self._tx_lock.locked():
            await self._conn.commit()

    async def rollback(self) -> None:
        """롤백 (transaction() 블록 밖에서만 동작, 블록 안에서는 예외로 롤백)"""
        if self._conn is not None and not self._tx_lock.locked():
            await self._conn.rollback()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저

        가장 바깥 블록은 어댑터 잠금을 잡은 뒤 BEGIN IMMEDIATE로 쓰기 잠금을 획득하므로
        블록 안의 잔액 검증과 쓰기 사이에 같은 어댑터의 다른 코루틴이나
        다른 프로세스의 writer가 끼어들 수 없다.
        같은 태스크의 중첩 호출은 바깥 트랜잭션에 합류하며, 바깥 블록만 커밋/롤백한다.

        사용 예시:
        ```python
        async with adapter.transaction():
            await adapter.execute("INSERT INTO ...")
            # 성공 시 자동 커밋, 예외 시 전체 롤백
        ```
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        depth = self._tx_depth.get()
        if depth > 0:
            token = self._tx_depth.set(depth + 1)
            try:
                yield self._conn
            finally:
                self._tx_depth.reset(token)
            return

        async with self._tx_lock:
            conn = self._conn
            if conn is None:
                raise RuntimeError("Not connected to database")

            await conn.execute("BEGIN IMMEDIATE")
            token = self._tx_depth.set(1)
            try:
                yield conn
                await conn.commit()
            except BaseException:
                # 취소(CancelledError) 시에도 열린 트랜잭션을 남기지 않는다
                await conn.rollback()
                raise
            finally:
                self._tx_depth.reset(token)

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    async def view_exists(self, view_name: str) -> bool:
        """View 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='view' AND name=?",
            (view_name,),
        )
        return result is not None

    async def get_table_info(self, table_name: str) -> list[dict[str, Any]]:
        """테이블 정보 조회"""
        rows = await self.fetchall(f"PRAGMA table_info({table_name})")

        columns = []
        for row in rows:
            columns.append({
                "cid": row[0],
                "name": row[1],
                "type": row[2],
                "notnull": bool(row[3]),
                "default_value": row[4],
                "pk": bool(row[5]),
            })

        return columns

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (Ledger 테이블/트리거/View 생성)

    Args:
        adapter: 연결된 SQLiteAdapter
    """
    from core.ledger.schema import init_ledger_schema

    await init_ledger_schema(adapter)
