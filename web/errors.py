"""
Ledger 예외 → HTTP 응답 매핑

- NotFoundError → 404
- InsufficientFundsError → 409
- 그 외 LedgerError → 400
- 예상하지 못한 예외 → 500 (로그 기록)
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException

from core.ledger.errors import InsufficientFundsError, LedgerError, NotFoundError

logger = logging.getLogger(__name__)


def to_http_exception(error: LedgerError) -> HTTPException:
    """Ledger 예외를 HTTPException으로 변환"""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, InsufficientFundsError):
        return HTTPException(status_code=409, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


@contextmanager
def ledger_errors(action: str) -> Iterator[None]:
    """라우트 본문의 예외를 HTTP 응답으로 변환

    사용 예시:
    ```python
    with ledger_errors("create account"):
        account = await lifecycle.create_account(...)
    ```
    """
    try:
        yield
    except HTTPException:
        raise
    except LedgerError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.error(f"Failed to {action}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e
