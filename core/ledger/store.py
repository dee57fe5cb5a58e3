"""
Ledger 저장소

계좌/봉투/거래/이체/결제/충전목표 행 단위 저장 및 조회.
비즈니스 규칙 검증은 서비스 계층(lifecycle, transfer, payment 등)에서 수행.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.ledger.models import (
    Account,
    AccountTransfer,
    BalanceByStatus,
    CreditCardPayment,
    Envelope,
    EnvelopeTransfer,
    FundingTarget,
    PaymentAllocation,
    Transaction,
    TransactionDetails,
    parse_date,
    to_money,
)
from core.types import UNASSIGNED_PREFIX, AccountType, EnvelopeType, TransactionStatus

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

# 부분 업데이트 허용 컬럼 (SQL 식별자 화이트리스트)
_UPDATABLE_COLUMNS: dict[str, frozenset[str]] = {
    "accounts": frozenset({"name", "type", "initial_balance"}),
    "envelopes": frozenset({"name", "spending_limit", "description"}),
    "transactions": frozenset({"account_id", "envelope_id", "amount", "date", "status", "description"}),
    "funding_targets": frozenset({"target_type", "target_amount", "minimum_amount", "description", "is_active"}),
}

_TRANSACTION_DETAIL_SELECT = """
    SELECT
        t.id, t.account_id, t.envelope_id, t.amount, t.date, t.status,
        t.description, t.created_at, t.updated_at,
        a.name AS account_name, a.type AS account_type,
        e.name AS envelope_name, e.type AS envelope_type
    FROM transactions t
    JOIN accounts a ON a.id = t.account_id
    JOIN envelopes e ON e.id = t.envelope_id
"""


def _money_text(value: Decimal | int | float | str | None) -> str | None:
    """금액을 TEXT 컬럼 저장 형식으로 변환"""
    if value is None:
        return None
    return str(to_money(value))


def _date_text(value: date | str) -> str:
    return parse_date(value).isoformat()


@dataclass(frozen=True)
class TransactionFilter:
    """거래 조회 조건

    모든 조건은 AND로 결합. None은 조건 없음.
    """

    account_id: int | None = None
    envelope_id: int | None = None
    status: TransactionStatus | str | None = None
    start_date: date | None = None
    end_date: date | None = None
    search: str | None = None

    def to_sql(self) -> tuple[str, list[Any]]:
        """WHERE 절과 파라미터 생성"""
        clauses: list[str] = []
        params: list[Any] = []

        if self.account_id is not None:
            clauses.append("t.account_id = ?")
            params.append(self.account_id)
        if self.envelope_id is not None:
            clauses.append("t.envelope_id = ?")
            params.append(self.envelope_id)
        if self.status is not None:
            clauses.append("t.status = ?")
            params.append(TransactionStatus(self.status).value)
        if self.start_date is not None:
            clauses.append("t.date >= ?")
            params.append(_date_text(self.start_date))
        if self.end_date is not None:
            clauses.append("t.date <= ?")
            params.append(_date_text(self.end_date))
        if self.search:
            clauses.append("(t.description LIKE ? OR a.name LIKE ? OR e.name LIKE ?)")
            pattern = f"%{self.search}%"
            params.extend([pattern, pattern, pattern])

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params


class LedgerStore:
    """Ledger 저장소

    봉투 예산 Ledger의 모든 테이블에 대한 행 단위 접근.
    잔액은 저장하지 않고 View(Projection)에서 계산.

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # -------------------------------------------------------------------------
    # 공통
    # -------------------------------------------------------------------------

    async def _update_row(self, table: str, row_id: int, fields: dict[str, Any]) -> bool:
        """허용된 컬럼만 부분 업데이트

        Returns:
            행이 갱신되었으면 True
        """
        allowed = _UPDATABLE_COLUMNS[table]
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"Cannot update columns {sorted(unknown)} on {table}")
        if not fields:
            return False

        assignments = ", ".join(f"{column} = ?" for column in fields)
        cursor = await self.db.execute(
            f"UPDATE {table} SET {assignments} WHERE id = ?",
            (*fields.values(), row_id),
        )
        return cursor.rowcount > 0

    async def _delete_row(self, table: str, row_id: int) -> bool:
        cursor = await self.db.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))
        return cursor.rowcount > 0

    # -------------------------------------------------------------------------
    # 계좌
    # -------------------------------------------------------------------------

    async def insert_account(
        self,
        name: str,
        account_type: AccountType,
        initial_balance: Decimal,
        current_balance: Decimal,
    ) -> int:
        return await self.db.insert(
            """
            INSERT INTO accounts (name, type, initial_balance, current_balance)
            VALUES (?, ?, ?, ?)
            """,
            (name, account_type.value, _money_text(initial_balance), _money_text(current_balance)),
        )

    async def get_account(self, account_id: int) -> Account | None:
        row = await self.db.fetchone_dict("SELECT * FROM accounts WHERE id = ?", (account_id,))
        return Account.from_row(row) if row else None

    async def list_accounts(self, account_type: AccountType | None = None) -> list[Account]:
        """계좌 목록 (최신순)"""
        if account_type is None:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM accounts ORDER BY created_at DESC, id DESC"
            )
        else:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM accounts WHERE type = ? ORDER BY created_at DESC, id DESC",
                (AccountType(account_type).value,),
            )
        return [Account.from_row(row) for row in rows]

    async def update_account(self, account_id: int, **fields: Any) -> bool:
        if "type" in fields:
            fields["type"] = AccountType(fields["type"]).value
        if "initial_balance" in fields:
            fields["initial_balance"] = _money_text(fields["initial_balance"])
        return await self._update_row("accounts", account_id, fields)

    async def delete_account(self, account_id: int) -> bool:
        return await self._delete_row("accounts", account_id)

    # -------------------------------------------------------------------------
    # 봉투
    # -------------------------------------------------------------------------

    async def insert_envelope(
        self,
        name: str,
        account_id: int,
        envelope_type: EnvelopeType,
        current_balance: Decimal = Decimal("0"),
        spending_limit: Decimal | None = None,
        description: str | None = None,
    ) -> int:
        return await self.db.insert(
            """
            INSERT INTO envelopes (name, account_id, type, current_balance, spending_limit, description)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                name,
                account_id,
                envelope_type.value,
                _money_text(current_balance),
                _money_text(spending_limit),
                description,
            ),
        )

    async def get_envelope(self, envelope_id: int) -> Envelope | None:
        row = await self.db.fetchone_dict("SELECT * FROM envelopes WHERE id = ?", (envelope_id,))
        return Envelope.from_row(row) if row else None

    async def list_envelopes(
        self,
        account_id: int | None = None,
        envelope_type: EnvelopeType | None = None,
    ) -> list[Envelope]:
        """봉투 목록 (id 순 = 생성 순)"""
        clauses: list[str] = []
        params: list[Any] = []
        if account_id is not None:
            clauses.append("account_id = ?")
            params.append(account_id)
        if envelope_type is not None:
            clauses.append("type = ?")
            params.append(EnvelopeType(envelope_type).value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = await self.db.fetchall_dict(
            f"SELECT * FROM envelopes {where} ORDER BY id ASC",
            tuple(params),
        )
        return [Envelope.from_row(row) for row in rows]

    async def list_envelopes_with_account(self) -> list[dict[str, Any]]:
        """봉투 + 계좌 이름/유형 (계좌명, 봉투명 순)"""
        rows = await self.db.fetchall_dict(
            """
            SELECT e.*, a.name AS account_name, a.type AS account_type
            FROM envelopes e
            JOIN accounts a ON a.id = e.account_id
            ORDER BY a.name, e.name
            """
        )
        result = []
        for row in rows:
            data = Envelope.from_row(row).to_dict()
            data["account_name"] = row["account_name"]
            data["account_type"] = row["account_type"]
            result.append(data)
        return result

    async def find_unassigned_envelope(self, account_id: int) -> Envelope | None:
        """계좌의 미배정 봉투 (예약 접두어, 가장 오래된 것)"""
        row = await self.db.fetchone_dict(
            """
            SELECT * FROM envelopes
            WHERE account_id = ? AND name LIKE ?
            ORDER BY id ASC
            LIMIT 1
            """,
            (account_id, f"{UNASSIGNED_PREFIX}%"),
        )
        return Envelope.from_row(row) if row else None

    async def update_envelope(self, envelope_id: int, **fields: Any) -> bool:
        if "spending_limit" in fields:
            fields["spending_limit"] = _money_text(fields["spending_limit"])
        return await self._update_row("envelopes", envelope_id, fields)

    async def delete_envelope(self, envelope_id: int) -> bool:
        return await self._delete_row("envelopes", envelope_id)

    async def delete_envelopes_by_account(self, account_id: int) -> int:
        cursor = await self.db.execute("DELETE FROM envelopes WHERE account_id = ?", (account_id,))
        return cursor.rowcount

    async def reassign_transactions(self, from_envelope_id: int, to_envelope_id: int) -> int:
        """봉투의 모든 거래를 다른 봉투로 이동"""
        cursor = await self.db.execute(
            "UPDATE transactions SET envelope_id = ? WHERE envelope_id = ?",
            (to_envelope_id, from_envelope_id),
        )
        return cursor.rowcount

    # -------------------------------------------------------------------------
    # 거래
    # -------------------------------------------------------------------------

    async def insert_transaction(
        self,
        account_id: int,
        envelope_id: int,
        amount: Decimal,
        txn_date: date | str,
        status: TransactionStatus,
        description: str | None = None,
    ) -> int:
        return await self.db.insert(
            """
            INSERT INTO transactions (account_id, envelope_id, amount, date, status, description)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                account_id,
                envelope_id,
                _money_text(amount),
                _date_text(txn_date),
                TransactionStatus(status).value,
                description,
            ),
        )

    async def get_transaction(self, transaction_id: int) -> Transaction | None:
        row = await self.db.fetchone_dict("SELECT * FROM transactions WHERE id = ?", (transaction_id,))
        return Transaction.from_row(row) if row else None

    async def get_transaction_details(self, transaction_id: int) -> TransactionDetails | None:
        row = await self.db.fetchone_dict(
            f"{_TRANSACTION_DETAIL_SELECT} WHERE t.id = ?",
            (transaction_id,),
        )
        return TransactionDetails.from_row(row) if row else None

    async def query_transactions(
        self,
        filters: TransactionFilter | None = None,
        limit: int | None = None,
        offset: int = 0,
        oldest_first: bool = False,
    ) -> list[TransactionDetails]:
        """조건부 거래 조회

        Args:
            filters: 조회 조건
            limit: 최대 행 수 (None이면 전체)
            offset: 건너뛸 행 수
            oldest_first: True면 (date, id) 오름차순, 기본은 최신순

        Returns:
            계좌/봉투 이름이 포함된 거래 목록
        """
        where, params = (filters or TransactionFilter()).to_sql()
        order = "t.date ASC, t.id ASC" if oldest_first else "t.date DESC, t.id DESC"
        sql = f"{_TRANSACTION_DETAIL_SELECT} {where} ORDER BY {order}"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])

        rows = await self.db.fetchall_dict(sql, tuple(params))
        return [TransactionDetails.from_row(row) for row in rows]

    async def count_transactions(self, filters: TransactionFilter | None = None) -> int:
        where, params = (filters or TransactionFilter()).to_sql()
        row = await self.db.fetchone(
            f"""
            SELECT COUNT(*)
            FROM transactions t
            JOIN accounts a ON a.id = t.account_id
            JOIN envelopes e ON e.id = t.envelope_id
            {where}
            """,
            tuple(params),
        )
        return row[0] if row else 0

    async def list_unpaid_transactions(self, envelope_id: int) -> list[Transaction]:
        """봉투의 미결제 거래 (오래된 순: date, 생성 순서)"""
        rows = await self.db.fetchall_dict(
            """
            SELECT * FROM transactions
            WHERE envelope_id = ? AND status = 'unpaid'
            ORDER BY date ASC, id ASC
            """,
            (envelope_id,),
        )
        return [Transaction.from_row(row) for row in rows]

    async def update_transaction(self, transaction_id: int, **fields: Any) -> bool:
        if "amount" in fields:
            fields["amount"] = _money_text(fields["amount"])
        if "date" in fields:
            fields["date"] = _date_text(fields["date"])
        if "status" in fields:
            fields["status"] = TransactionStatus(fields["status"]).value
        return await self._update_row("transactions", transaction_id, fields)

    async def delete_transaction(self, transaction_id: int) -> bool:
        return await self._delete_row("transactions", transaction_id)

    async def list_outgoing_totals_since(self, since: date) -> list[dict[str, Any]]:
        """현금 봉투별 기간 내 지출(음수 금액) 합계/건수"""
        rows = await self.db.fetchall_dict(
            """
            SELECT
                t.envelope_id,
                SUM(-CAST(t.amount AS REAL)) AS outgoing_total,
                COUNT(*) AS outgoing_count
            FROM transactions t
            JOIN envelopes e ON e.id = t.envelope_id
            WHERE e.type = 'cash'
              AND CAST(t.amount AS REAL) < 0
              AND t.date >= ?
            GROUP BY t.envelope_id
            """,
            (_date_text(since),),
        )
        return rows

    # -------------------------------------------------------------------------
    # 이체 기록
    # -------------------------------------------------------------------------

    async def insert_envelope_transfer(
        self,
        from_envelope_id: int,
        to_envelope_id: int,
        amount: Decimal,
        transfer_date: date | str,
        description: str | None,
    ) -> int:
        return await self.db.insert(
            """
            INSERT INTO envelope_transfers (from_envelope_id, to_envelope_id, amount, date, description)
            VALUES (?, ?, ?, ?, ?)
            """,
            (from_envelope_id, to_envelope_id, _money_text(amount), _date_text(transfer_date), description),
        )

    async def get_envelope_transfer(self, transfer_id: int) -> EnvelopeTransfer | None:
        row = await self.db.fetchone_dict("SELECT * FROM envelope_transfers WHERE id = ?", (transfer_id,))
        return EnvelopeTransfer.from_row(row) if row else None

    async def list_envelope_transfers(self, envelope_id: int | None = None) -> list[EnvelopeTransfer]:
        """봉투 이체 기록 (최신순)"""
        if envelope_id is None:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM envelope_transfers ORDER BY date DESC, id DESC"
            )
        else:
            rows = await self.db.fetchall_dict(
                """
                SELECT * FROM envelope_transfers
                WHERE from_envelope_id = ? OR to_envelope_id = ?
                ORDER BY date DESC, id DESC
                """,
                (envelope_id, envelope_id),
            )
        return [EnvelopeTransfer.from_row(row) for row in rows]

    async def insert_account_transfer(
        self,
        from_account_id: int,
        to_account_id: int,
        from_envelope_id: int,
        to_envelope_id: int,
        from_transaction_id: int,
        to_transaction_id: int,
        amount: Decimal,
        transfer_date: date | str,
        description: str | None,
    ) -> int:
        return await self.db.insert(
            """
            INSERT INTO account_transfers (
                from_account_id, to_account_id, from_envelope_id, to_envelope_id,
                from_transaction_id, to_transaction_id, amount, date, description
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                from_account_id,
                to_account_id,
                from_envelope_id,
                to_envelope_id,
                from_transaction_id,
                to_transaction_id,
                _money_text(amount),
                _date_text(transfer_date),
                description,
            ),
        )

    async def get_account_transfer(self, transfer_id: int) -> AccountTransfer | None:
        row = await self.db.fetchone_dict("SELECT * FROM account_transfers WHERE id = ?", (transfer_id,))
        return AccountTransfer.from_row(row) if row else None

    async def list_account_transfers(self) -> list[AccountTransfer]:
        rows = await self.db.fetchall_dict(
            "SELECT * FROM account_transfers ORDER BY date DESC, id DESC"
        )
        return [AccountTransfer.from_row(row) for row in rows]

    # -------------------------------------------------------------------------
    # 신용카드 결제
    # -------------------------------------------------------------------------

    async def insert_payment(
        self,
        credit_card_account_id: int,
        total_amount: Decimal,
        payment_date: date | str,
        description: str | None,
    ) -> int:
        return await self.db.insert(
            """
            INSERT INTO credit_card_payments (credit_card_account_id, total_amount, date, description)
            VALUES (?, ?, ?, ?)
            """,
            (credit_card_account_id, _money_text(total_amount), _date_text(payment_date), description),
        )

    async def insert_allocation(self, payment_id: int, envelope_id: int, amount: Decimal) -> int:
        return await self.db.insert(
            "INSERT INTO payment_allocations (payment_id, envelope_id, amount) VALUES (?, ?, ?)",
            (payment_id, envelope_id, _money_text(amount)),
        )

    async def get_payment(self, payment_id: int) -> CreditCardPayment | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM credit_card_payments WHERE id = ?", (payment_id,)
        )
        return CreditCardPayment.from_row(row) if row else None

    async def list_payments(self, account_id: int | None = None) -> list[CreditCardPayment]:
        """결제 목록 (최신순)"""
        if account_id is None:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM credit_card_payments ORDER BY date DESC, id DESC"
            )
        else:
            rows = await self.db.fetchall_dict(
                """
                SELECT * FROM credit_card_payments
                WHERE credit_card_account_id = ?
                ORDER BY date DESC, id DESC
                """,
                (account_id,),
            )
        return [CreditCardPayment.from_row(row) for row in rows]

    async def list_allocations(self, payment_id: int) -> list[PaymentAllocation]:
        rows = await self.db.fetchall_dict(
            """
            SELECT pa.*, e.name AS envelope_name
            FROM payment_allocations pa
            JOIN envelopes e ON e.id = pa.envelope_id
            WHERE pa.payment_id = ?
            ORDER BY pa.id ASC
            """,
            (payment_id,),
        )
        return [PaymentAllocation.from_row(row) for row in rows]

    # -------------------------------------------------------------------------
    # 충전 목표
    # -------------------------------------------------------------------------

    async def insert_funding_target(
        self,
        envelope_id: int,
        target_type: str,
        target_amount: Decimal,
        minimum_amount: Decimal | None = None,
        description: str | None = None,
        is_active: bool = True,
    ) -> int:
        return await self.db.insert(
            """
            INSERT INTO funding_targets (
                envelope_id, target_type, target_amount, minimum_amount, description, is_active
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                envelope_id,
                target_type,
                _money_text(target_amount),
                _money_text(minimum_amount),
                description,
                1 if is_active else 0,
            ),
        )

    async def get_funding_target(self, target_id: int) -> FundingTarget | None:
        row = await self.db.fetchone_dict("SELECT * FROM funding_targets WHERE id = ?", (target_id,))
        return FundingTarget.from_row(row) if row else None

    async def list_funding_targets(
        self,
        active_only: bool = False,
        envelope_id: int | None = None,
    ) -> list[FundingTarget]:
        clauses: list[str] = []
        params: list[Any] = []
        if active_only:
            clauses.append("is_active = 1")
        if envelope_id is not None:
            clauses.append("envelope_id = ?")
            params.append(envelope_id)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = await self.db.fetchall_dict(
            f"SELECT * FROM funding_targets {where} ORDER BY id ASC",
            tuple(params),
        )
        return [FundingTarget.from_row(row) for row in rows]

    async def update_funding_target(self, target_id: int, **fields: Any) -> bool:
        for key in ("target_amount", "minimum_amount"):
            if key in fields:
                fields[key] = _money_text(fields[key])
        if "is_active" in fields:
            fields["is_active"] = 1 if fields["is_active"] else 0
        return await self._update_row("funding_targets", target_id, fields)

    async def delete_funding_target(self, target_id: int) -> bool:
        return await self._delete_row("funding_targets", target_id)

    # -------------------------------------------------------------------------
    # 잔액 Projection View
    # -------------------------------------------------------------------------

    async def fetch_account_balances(
        self,
        account_id: int | None = None,
        account_type: AccountType | None = None,
    ) -> list[BalanceByStatus]:
        clauses: list[str] = []
        params: list[Any] = []
        if account_id is not None:
            clauses.append("account_id = ?")
            params.append(account_id)
        if account_type is not None:
            clauses.append("account_type = ?")
            params.append(AccountType(account_type).value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = await self.db.fetchall_dict(
            f"SELECT * FROM account_balances_by_status {where} ORDER BY account_id",
            tuple(params),
        )
        return [BalanceByStatus.from_account_row(row) for row in rows]

    async def fetch_envelope_balances(
        self,
        envelope_id: int | None = None,
        account_id: int | None = None,
        envelope_type: EnvelopeType | None = None,
    ) -> list[BalanceByStatus]:
        clauses: list[str] = []
        params: list[Any] = []
        if envelope_id is not None:
            clauses.append("envelope_id = ?")
            params.append(envelope_id)
        if account_id is not None:
            clauses.append("account_id = ?")
            params.append(account_id)
        if envelope_type is not None:
            clauses.append("envelope_type = ?")
            params.append(EnvelopeType(envelope_type).value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = await self.db.fetchall_dict(
            f"SELECT * FROM envelope_balances_by_status {where} ORDER BY envelope_id",
            tuple(params),
        )
        return [BalanceByStatus.from_envelope_row(row) for row in rows]

    async def fetch_account_envelope_totals(self) -> list[dict[str, Any]]:
        """계좌별 가용 잔액과 소속 봉투 가용 잔액 합계 (단일 쿼리)"""
        return await self.db.fetchall_dict(
            """
            SELECT
                ab.account_id,
                ab.account_name,
                ab.available_balance AS account_balance,
                COALESCE(eb.envelope_sum, 0) AS envelope_sum
            FROM account_balances_by_status ab
            LEFT JOIN (
                SELECT account_id, SUM(available_balance) AS envelope_sum
                FROM envelope_balances_by_status
                GROUP BY account_id
            ) eb ON eb.account_id = ab.account_id
            ORDER BY ab.account_id
            """
        )
