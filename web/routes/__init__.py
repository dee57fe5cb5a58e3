"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- accounts: 계좌 관리
- envelopes: 봉투 관리
- transactions: 거래 내역
- transfers: 봉투 간 / 계좌 간 이체
- payments: 신용카드 결제
- balances: 상태별 잔액 및 무결성 검사
- funding: 충전 목표 및 급여일 보상 계획
"""
