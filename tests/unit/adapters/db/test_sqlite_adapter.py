"""
SQLite 어댑터 테스트

SQLiteAdapter 및 관련 함수 테스트.
"""

import asyncio
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import (
    SQLiteAdapter,
    get_db_path,
    create_connection,
    init_schema,
)
from core.constants import Paths


class TestGetDbPath:
    """get_db_path 테스트"""

    def test_default_profile(self) -> None:
        """기본 프로필"""
        path = get_db_path()

        assert path == Paths.DATA_DIR / "profiles" / "default.db"
        assert isinstance(path, Path)

    def test_named_profile(self, tmp_path: Path) -> None:
        """프로필별 독립 DB 파일"""
        path = get_db_path("household", tmp_path)

        assert path == tmp_path / "profiles" / "household.db"

    def test_profiles_are_isolated(self, tmp_path: Path) -> None:
        assert get_db_path("alice", tmp_path) != get_db_path("bob", tmp_path)

    @pytest.mark.parametrize("profile", ["", "../escape", "a/b", "with space"])
    def test_invalid_profile(self, profile: str, tmp_path: Path) -> None:
        """경로 탈출 가능한 이름 거부"""
        with pytest.raises(ValueError):
            get_db_path(profile, tmp_path)


class TestCreateConnection:
    """create_connection 테스트"""

    @pytest.mark.asyncio
    async def test_create_connection(self, tmp_path: Path) -> None:
        """연결 생성"""
        db_path = tmp_path / "test.db"

        conn = await create_connection(db_path)

        assert conn is not None

        # WAL 모드 확인
        cursor = await conn.execute("PRAGMA journal_mode")
        row = await cursor.fetchone()
        assert row[0].upper() == "WAL"

        await conn.close()

    @pytest.mark.asyncio
    async def test_foreign_keys_enabled(self, tmp_path: Path) -> None:
        """외래 키 제약 활성화"""
        conn = await create_connection(tmp_path / "fk.db")

        cursor = await conn.execute("PRAGMA foreign_keys")
        row = await cursor.fetchone()
        assert row[0] == 1

        await conn.close()

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """부모 디렉토리 생성"""
        db_path = tmp_path / "subdir" / "test.db"

        conn = await create_connection(db_path)

        assert db_path.parent.exists()

        await conn.close()


class TestSQLiteAdapter:
    """SQLiteAdapter 테스트"""

    @pytest_asyncio.fixture
    async def adapter(self, tmp_path: Path) -> SQLiteAdapter:
        """어댑터 픽스처"""
        db_path = tmp_path / "test.db"
        adapter = SQLiteAdapter(db_path)
        await adapter.connect()
        yield adapter
        await adapter.close()

    @pytest.mark.asyncio
    async def test_connect_and_close(self, tmp_path: Path) -> None:
        """연결 및 종료"""
        db_path = tmp_path / "test.db"
        adapter = SQLiteAdapter(db_path)

        assert adapter.is_connected is False

        await adapter.connect()
        assert adapter.is_connected is True

        await adapter.close()
        assert adapter.is_connected is False

    @pytest.mark.asyncio
    async def test_execute_requires_connection(self, tmp_path: Path) -> None:
        adapter = SQLiteAdapter(tmp_path / "test.db")

        with pytest.raises(RuntimeError):
            await adapter.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_insert_returns_rowid(self, adapter: SQLiteAdapter) -> None:
        """INSERT 후 rowid 반환"""
        await adapter.execute("CREATE TABLE test (id INTEGER PRIMARY KEY, name TEXT)")

        first = await adapter.insert("INSERT INTO test (name) VALUES (?)", ("가",))
        second = await adapter.insert("INSERT INTO test (name) VALUES (?)", ("나",))
        await adapter.commit()

        assert first == 1
        assert second == 2

    @pytest.mark.asyncio
    async def test_fetch_dict(self, adapter: SQLiteAdapter) -> None:
        """컬럼명 dict 조회"""
        await adapter.execute("CREATE TABLE items (id INTEGER PRIMARY KEY, value TEXT)")
        await adapter.executemany(
            "INSERT INTO items (value) VALUES (?)",
            [("A",), ("B",)],
        )
        await adapter.commit()

        row = await adapter.fetchone_dict("SELECT id, value FROM items WHERE value = ?", ("B",))
        rows = await adapter.fetchall_dict("SELECT id, value FROM items ORDER BY id")
        missing = await adapter.fetchone_dict("SELECT id FROM items WHERE value = 'Z'")

        assert row == {"id": 2, "value": "B"}
        assert rows == [{"id": 1, "value": "A"}, {"id": 2, "value": "B"}]
        assert missing is None

    @pytest.mark.asyncio
    async def test_transaction_commit(self, adapter: SQLiteAdapter) -> None:
        """트랜잭션 커밋"""
        await adapter.execute("CREATE TABLE tx_test (id INTEGER)")
        await adapter.commit()

        async with adapter.transaction() as conn:
            await conn.execute("INSERT INTO tx_test (id) VALUES (1)")
            await conn.execute("INSERT INTO tx_test (id) VALUES (2)")

        rows = await adapter.fetchall("SELECT id FROM tx_test")
        assert len(rows) == 2
        assert adapter.in_transaction is False

    @pytest.mark.asyncio
    async def test_transaction_rollback(self, adapter: SQLiteAdapter) -> None:
        """트랜잭션 롤백"""
        await adapter.execute("CREATE TABLE tx_test2 (id INTEGER)")
        await adapter.commit()

        with pytest.raises(ValueError):
            async with adapter.transaction() as conn:
                await conn.execute("INSERT INTO tx_test2 (id) VALUES (1)")
                raise ValueError("의도적 에러")

        rows = await adapter.fetchall("SELECT id FROM tx_test2")
        assert len(rows) == 0

    @pytest.mark.asyncio
    async def test_nested_transaction_joins_outer(self, adapter: SQLiteAdapter) -> None:
        """중첩 트랜잭션은 바깥 트랜잭션에 합류 (내부 예외 시 전체 롤백)"""
        await adapter.execute("CREATE TABLE nested (id INTEGER)")
        await adapter.commit()

        with pytest.raises(ValueError):
            async with adapter.transaction():
                await adapter.execute("INSERT INTO nested (id) VALUES (1)")
                async with adapter.transaction():
                    assert adapter.in_transaction is True
                    await adapter.execute("INSERT INTO nested (id) VALUES (2)")
                raise ValueError("바깥 블록 실패")

        rows = await adapter.fetchall("SELECT id FROM nested")
        assert rows == []

    @pytest.mark.asyncio
    async def test_commit_inside_transaction_is_deferred(self, adapter: SQLiteAdapter) -> None:
        """블록 내부 commit()은 바깥 블록까지 보류"""
        await adapter.execute("CREATE TABLE deferred (id INTEGER)")
        await adapter.commit()

        with pytest.raises(RuntimeError):
            async with adapter.transaction():
                await adapter.execute("INSERT INTO deferred (id) VALUES (1)")
                await adapter.commit()
                raise RuntimeError("커밋 이후 실패")

        rows = await adapter.fetchall("SELECT id FROM deferred")
        assert rows == []

    @pytest.mark.asyncio
    async def test_concurrent_transactions_are_serialized(self, adapter: SQLiteAdapter) -> None:
        """같은 어댑터를 공유하는 코루틴의 트랜잭션은 순서대로 실행 (읽기-쓰기 사이 끼어들기 없음)"""
        await adapter.execute("CREATE TABLE counter (value INTEGER)")
        await adapter.execute("INSERT INTO counter (value) VALUES (0)")
        events: list[str] = []

        async def increment(name: str) -> None:
            async with adapter.transaction():
                events.append(f"{name}:begin")
                row = await adapter.fetchone("SELECT value FROM counter")
                await asyncio.sleep(0.01)
                await adapter.execute("UPDATE counter SET value = ?", (row[0] + 1,))
                events.append(f"{name}:end")

        await asyncio.gather(increment("a"), increment("b"))

        row = await adapter.fetchone("SELECT value FROM counter")
        assert row[0] == 2
        assert events == ["a:begin", "a:end", "b:begin", "b:end"]

    @pytest.mark.asyncio
    async def test_waiting_transaction_does_not_join_other_task(self, adapter: SQLiteAdapter) -> None:
        """다른 태스크의 실패한 트랜잭션은 대기 중인 트랜잭션의 쓰기를 롤백하지 않음"""
        await adapter.execute("CREATE TABLE isolated (id INTEGER)")

        async def failing() -> None:
            async with adapter.transaction():
                await adapter.execute("INSERT INTO isolated (id) VALUES (1)")
                await asyncio.sleep(0.01)
                raise ValueError("첫 번째 트랜잭션 실패")

        async def succeeding() -> None:
            await asyncio.sleep(0)
            async with adapter.transaction():
                assert adapter.in_transaction is True
                await adapter.execute("INSERT INTO isolated (id) VALUES (2)")

        results = await asyncio.gather(failing(), succeeding(), return_exceptions=True)

        assert isinstance(results[0], ValueError)
        assert results[1] is None
        rows = await adapter.fetchall("SELECT id FROM isolated")
        assert rows == [(2,)]

    @pytest.mark.asyncio
    async def test_statements_outside_transaction_autocommit(self, tmp_path: Path) -> None:
        """transaction() 밖의 쓰기는 즉시 커밋되어 이후 BEGIN IMMEDIATE와 충돌하지 않음"""
        async with SQLiteAdapter(tmp_path / "auto.db") as writer:
            await writer.execute("CREATE TABLE auto (id INTEGER)")
            await writer.execute("INSERT INTO auto (id) VALUES (1)")

            async with SQLiteAdapter(tmp_path / "auto.db", readonly=True) as reader:
                assert await reader.fetchall("SELECT id FROM auto") == [(1,)]

            async with writer.transaction():
                await writer.execute("INSERT INTO auto (id) VALUES (2)")

            assert await writer.fetchall("SELECT id FROM auto ORDER BY id") == [(1,), (2,)]

    @pytest.mark.asyncio
    async def test_table_exists(self, adapter: SQLiteAdapter) -> None:
        """테이블 존재 확인"""
        assert await adapter.table_exists("nonexistent") is False

        await adapter.execute("CREATE TABLE existing (id INTEGER)")
        await adapter.commit()

        assert await adapter.table_exists("existing") is True

    @pytest.mark.asyncio
    async def test_context_manager(self, tmp_path: Path) -> None:
        """컨텍스트 매니저"""
        db_path = tmp_path / "ctx_test.db"

        async with SQLiteAdapter(db_path) as adapter:
            assert adapter.is_connected is True
            await adapter.execute("CREATE TABLE ctx (id INTEGER)")

        # 컨텍스트 종료 후 연결 해제 확인
        assert adapter.is_connected is False


class TestInitSchema:
    """init_schema 테스트"""

    LEDGER_TABLES = [
        "accounts",
        "envelopes",
        "transactions",
        "envelope_transfers",
        "account_transfers",
        "credit_card_payments",
        "payment_allocations",
        "funding_targets",
    ]

    @pytest.mark.asyncio
    async def test_init_schema_creates_tables(self, tmp_path: Path) -> None:
        """스키마 초기화 - 테이블/View 생성"""
        async with SQLiteAdapter(tmp_path / "schema_test.db") as adapter:
            await init_schema(adapter)

            for table in self.LEDGER_TABLES:
                assert await adapter.table_exists(table) is True, table
            assert await adapter.view_exists("account_balances_by_status") is True
            assert await adapter.view_exists("envelope_balances_by_status") is True

    @pytest.mark.asyncio
    async def test_init_schema_idempotent(self, tmp_path: Path) -> None:
        """스키마 초기화 - 반복 실행 안전"""
        async with SQLiteAdapter(tmp_path / "idempotent.db") as adapter:
            await init_schema(adapter)
            await init_schema(adapter)

            assert await adapter.table_exists("accounts") is True

    @pytest.mark.asyncio
    async def test_transaction_columns(self, tmp_path: Path) -> None:
        """거래 테이블 컬럼"""
        async with SQLiteAdapter(tmp_path / "columns.db") as adapter:
            await init_schema(adapter)

            columns = {c["name"] for c in await adapter.get_table_info("transactions")}

        assert {"account_id", "envelope_id", "amount", "date", "status", "description"} <= columns

    @pytest.mark.asyncio
    async def test_status_check_constraint(self, tmp_path: Path) -> None:
        """알 수 없는 상태 거부"""
        import sqlite3

        async with SQLiteAdapter(tmp_path / "check.db") as adapter:
            await init_schema(adapter)
            account_id = await adapter.insert(
                "INSERT INTO accounts (name, type, initial_balance, current_balance) VALUES (?, ?, ?, ?)",
                ("Checking", "checking", "0", "0"),
            )
            envelope_id = await adapter.insert(
                "INSERT INTO envelopes (name, account_id, type, current_balance) VALUES (?, ?, ?, ?)",
                ("Groceries", account_id, "cash", "0"),
            )

            with pytest.raises(sqlite3.IntegrityError):
                await adapter.execute(
                    "INSERT INTO transactions (account_id, envelope_id, amount, date, status) VALUES (?, ?, ?, ?, ?)",
                    (account_id, envelope_id, "10", "2024-01-01", "bogus"),
                )
