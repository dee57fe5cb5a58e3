"""
봉투 예산 Ledger 스키마 초기화

Web/스크립트 시작 시 자동으로 Ledger 테이블, 트리거, View 생성.
CREATE IF NOT EXISTS / DROP VIEW IF EXISTS 패턴으로 안전하게 동작.

금액 컬럼은 Decimal 문자열(TEXT)로 저장하고, 집계 View에서만 REAL로 CAST.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

# updated_at 자동 갱신 트리거 대상
_TIMESTAMPED_TABLES = ("accounts", "envelopes", "transactions", "funding_targets")


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """Ledger 스키마 초기화 (테이블 + 트리거 + View)

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).
    View는 항상 재생성.

    Args:
        db: SQLiteAdapter 인스턴스
    """
    await _create_ledger_tables(db)
    await _create_ledger_triggers(db)
    await _create_ledger_views(db)
    logger.info("Ledger 스키마 초기화 완료")


async def _create_ledger_tables(db: "SQLiteAdapter") -> None:
    """Ledger 테이블 생성"""

    # accounts 테이블 (current_balance는 생성 시점 캐시값)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS accounts (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            name             TEXT NOT NULL,
            type             TEXT NOT NULL
                             CHECK (type IN ('checking', 'savings', 'credit_card', 'cash')),
            initial_balance  TEXT NOT NULL DEFAULT '0',
            current_balance  TEXT NOT NULL DEFAULT '0',
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # envelopes 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS envelopes (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            name             TEXT NOT NULL,
            account_id       INTEGER NOT NULL,
            type             TEXT NOT NULL CHECK (type IN ('cash', 'debt')),
            current_balance  TEXT NOT NULL DEFAULT '0',
            spending_limit   TEXT,
            description      TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (account_id) REFERENCES accounts (id) ON DELETE CASCADE
        )
    """)

    # transactions 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            account_id       INTEGER NOT NULL,
            envelope_id      INTEGER NOT NULL,
            amount           TEXT NOT NULL,
            date             TEXT NOT NULL,
            status           TEXT NOT NULL
                             CHECK (status IN ('not_posted', 'pending', 'cleared', 'unpaid', 'paid')),
            description      TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (account_id) REFERENCES accounts (id) ON DELETE CASCADE,
            FOREIGN KEY (envelope_id) REFERENCES envelopes (id) ON DELETE CASCADE,
            CHECK (CAST(amount AS REAL) != 0)
        )
    """)

    # envelope_transfers 테이블 (봉투 간 이체 감사 기록)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS envelope_transfers (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            from_envelope_id INTEGER NOT NULL,
            to_envelope_id   INTEGER NOT NULL,
            amount           TEXT NOT NULL,
            date             TEXT NOT NULL,
            description      TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (from_envelope_id) REFERENCES envelopes (id) ON DELETE CASCADE,
            FOREIGN KEY (to_envelope_id) REFERENCES envelopes (id) ON DELETE CASCADE,
            CHECK (CAST(amount AS REAL) > 0)
        )
    """)

    # account_transfers 테이블 (계좌 간 이체 감사 기록)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS account_transfers (
            id                  INTEGER PRIMARY KEY AUTOINCREMENT,
            from_account_id     INTEGER NOT NULL,
            to_account_id       INTEGER NOT NULL,
            from_envelope_id    INTEGER NOT NULL,
            to_envelope_id      INTEGER NOT NULL,
            from_transaction_id INTEGER,
            to_transaction_id   INTEGER,
            amount              TEXT NOT NULL,
            date                TEXT NOT NULL,
            description         TEXT,
            created_at          TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (from_account_id) REFERENCES accounts (id) ON DELETE CASCADE,
            FOREIGN KEY (to_account_id) REFERENCES accounts (id) ON DELETE CASCADE,
            FOREIGN KEY (from_envelope_id) REFERENCES envelopes (id) ON DELETE CASCADE,
            FOREIGN KEY (to_envelope_id) REFERENCES envelopes (id) ON DELETE CASCADE,
            FOREIGN KEY (from_transaction_id) REFERENCES transactions (id) ON DELETE SET NULL,
            FOREIGN KEY (to_transaction_id) REFERENCES transactions (id) ON DELETE SET NULL,
            CHECK (CAST(amount AS REAL) > 0),
            CHECK (from_account_id != to_account_id)
        )
    """)

    # credit_card_payments 테이블 (결제 헤더)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS credit_card_payments (
            id                     INTEGER PRIMARY KEY AUTOINCREMENT,
            credit_card_account_id INTEGER NOT NULL,
            total_amount           TEXT NOT NULL,
            date                   TEXT NOT NULL,
            description            TEXT,
            created_at             TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (credit_card_account_id) REFERENCES accounts (id) ON DELETE CASCADE,
            CHECK (CAST(total_amount AS REAL) > 0)
        )
    """)

    # payment_allocations 테이블 (결제 재원 봉투별 배분)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS payment_allocations (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            payment_id       INTEGER NOT NULL,
            envelope_id      INTEGER NOT NULL,
            amount           TEXT NOT NULL,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (payment_id) REFERENCES credit_card_payments (id) ON DELETE CASCADE,
            FOREIGN KEY (envelope_id) REFERENCES envelopes (id) ON DELETE CASCADE,
            CHECK (CAST(amount AS REAL) > 0)
        )
    """)

    # funding_targets 테이블 (보충 계획용, 잔액 계산과 무관)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS funding_targets (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            envelope_id      INTEGER NOT NULL,
            target_type      TEXT NOT NULL
                             CHECK (target_type IN ('monthly_minimum', 'per_paycheck', 'monthly_stipend')),
            target_amount    TEXT NOT NULL,
            minimum_amount   TEXT,
            description      TEXT,
            is_active        INTEGER NOT NULL DEFAULT 1,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (envelope_id) REFERENCES envelopes (id) ON DELETE CASCADE
        )
    """)

    # 인덱스 생성
    await db.execute("CREATE INDEX IF NOT EXISTS idx_accounts_type ON accounts(type)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_envelopes_account_id ON envelopes(account_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_envelopes_type ON envelopes(type)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_transactions_account_id ON transactions(account_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_transactions_envelope_id ON transactions(envelope_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_transactions_status ON transactions(status)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_envelope_transfers_envelopes ON envelope_transfers(from_envelope_id, to_envelope_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_account_transfers_accounts ON account_transfers(from_account_id, to_account_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_credit_card_payments_account_id ON credit_card_payments(credit_card_account_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_credit_card_payments_date ON credit_card_payments(date)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_payment_allocations_payment_id ON payment_allocations(payment_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_payment_allocations_envelope_id ON payment_allocations(envelope_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_funding_targets_envelope_id ON funding_targets(envelope_id)")

    await db.commit()
    logger.debug("Ledger 테이블 생성 완료")


async def _create_ledger_triggers(db: "SQLiteAdapter") -> None:
    """updated_at 자동 갱신 트리거 생성"""
    for table in _TIMESTAMPED_TABLES:
        await db.execute(f"""
            CREATE TRIGGER IF NOT EXISTS trg_{table}_updated_at
            AFTER UPDATE ON {table}
            FOR EACH ROW
            BEGIN
                UPDATE {table} SET updated_at = datetime('now') WHERE id = NEW.id;
            END
        """)

    await db.commit()
    logger.debug("Ledger 트리거 생성 완료")


async def _create_ledger_views(db: "SQLiteAdapter") -> None:
    """상태별 잔액 Projection View 생성

    available_balance 규칙:
    - 거래가 하나도 없으면 저장된 current_balance (초기 잔액 부트스트랩)
    - 은행형 계좌/현금 봉투: pending + cleared 합계
    - 신용카드 계좌: unpaid + cleared 합계
    - 부채 봉투: unpaid 합계

    View는 항상 DROP 후 CREATE하여 스키마 변경 시에도 안전.
    """

    # 1. 계좌별 잔액 View
    await db.execute("DROP VIEW IF EXISTS account_balances_by_status")
    await db.execute("""
        CREATE VIEW account_balances_by_status AS
        SELECT
            a.id AS account_id,
            a.name AS account_name,
            a.type AS account_type,
            COALESCE(SUM(CASE WHEN t.status = 'not_posted' THEN CAST(t.amount AS REAL) END), 0) AS not_posted_balance,
            COALESCE(SUM(CASE WHEN t.status = 'pending' THEN CAST(t.amount AS REAL) END), 0) AS pending_balance,
            COALESCE(SUM(CASE WHEN t.status = 'cleared' THEN CAST(t.amount AS REAL) END), 0) AS cleared_balance,
            COALESCE(SUM(CASE WHEN t.status = 'unpaid' THEN CAST(t.amount AS REAL) END), 0) AS unpaid_balance,
            COALESCE(SUM(CASE WHEN t.status = 'paid' THEN CAST(t.amount AS REAL) END), 0) AS paid_balance,
            COALESCE(SUM(CAST(t.amount AS REAL)), 0) AS total_balance,
            CASE
                WHEN COUNT(t.id) = 0 THEN CAST(a.current_balance AS REAL)
                WHEN a.type = 'credit_card' THEN
                    COALESCE(SUM(CASE WHEN t.status IN ('unpaid', 'cleared') THEN CAST(t.amount AS REAL) END), 0)
                ELSE
                    COALESCE(SUM(CASE WHEN t.status IN ('pending', 'cleared') THEN CAST(t.amount AS REAL) END), 0)
            END AS available_balance,
            COUNT(t.id) AS transaction_count
        FROM accounts a
        LEFT JOIN transactions t ON t.account_id = a.id
        GROUP BY a.id, a.name, a.type, a.current_balance
    """)

    # 2. 봉투별 잔액 View
    await db.execute("DROP VIEW IF EXISTS envelope_balances_by_status")
    await db.execute("""
        CREATE VIEW envelope_balances_by_status AS
        SELECT
            e.id AS envelope_id,
            e.name AS envelope_name,
            e.type AS envelope_type,
            e.account_id,
            a.name AS account_name,
            a.type AS account_type,
            COALESCE(SUM(CASE WHEN t.status = 'not_posted' THEN CAST(t.amount AS REAL) END), 0) AS not_posted_balance,
            COALESCE(SUM(CASE WHEN t.status = 'pending' THEN CAST(t.amount AS REAL) END), 0) AS pending_balance,
            COALESCE(SUM(CASE WHEN t.status = 'cleared' THEN CAST(t.amount AS REAL) END), 0) AS cleared_balance,
            COALESCE(SUM(CASE WHEN t.status = 'unpaid' THEN CAST(t.amount AS REAL) END), 0) AS unpaid_balance,
            COALESCE(SUM(CASE WHEN t.status = 'paid' THEN CAST(t.amount AS REAL) END), 0) AS paid_balance,
            COALESCE(SUM(CAST(t.amount AS REAL)), 0) AS total_balance,
            CASE
                WHEN COUNT(t.id) = 0 THEN CAST(e.current_balance AS REAL)
                WHEN e.type = 'debt' THEN
                    COALESCE(SUM(CASE WHEN t.status = 'unpaid' THEN CAST(t.amount AS REAL) END), 0)
                ELSE
                    COALESCE(SUM(CASE WHEN t.status IN ('pending', 'cleared') THEN CAST(t.amount AS REAL) END), 0)
            END AS available_balance,
            COUNT(t.id) AS transaction_count
        FROM envelopes e
        JOIN accounts a ON a.id = e.account_id
        LEFT JOIN transactions t ON t.envelope_id = e.id
        GROUP BY e.id, e.name, e.type, e.account_id, a.name, a.type, e.current_balance
    """)

    await db.commit()
    logger.debug("Ledger View 생성 완료")
