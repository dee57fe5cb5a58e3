"""
FastAPI 애플리케이션

라우터 등록 및 앱 설정.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import get_settings
from web.routes import (
    accounts,
    balances,
    envelopes,
    funding,
    health,
    payments,
    transactions,
    transfers,
)
from web.routes.health import API_VERSION

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리"""
    settings = get_settings()

    # 시작 시 - DB 스키마 자동 초기화 (멱등)
    async with SQLiteAdapter(settings.db_path) as db:
        await init_schema(db)
    logger.info(f"Ledger DB 준비 완료: profile={settings.profile}, path={settings.db_path}")

    yield


app = FastAPI(
    title="Envelope Ledger API",
    description="봉투 예산 관리 Ledger API",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS 설정 (개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =========================================================================
# API 라우터 등록
# =========================================================================

app.include_router(health.router)
app.include_router(accounts.router)
app.include_router(envelopes.router)
app.include_router(transactions.router)
app.include_router(transfers.router)
app.include_router(payments.router)
app.include_router(balances.router)
app.include_router(funding.router)
