"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화

도메인 객체 응답은 각 모델의 to_dict() 결과를 그대로 반환하며,
여기에는 고정 형식 응답만 정의한다.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    profile: str = Field(..., description="Ledger 프로필")
    version: str = Field(..., description="API 버전")
    timestamp: datetime = Field(..., description="응답 시간 (UTC)")


class DeleteResponse(BaseModel):
    """삭제 응답"""

    success: bool = Field(default=True, description="삭제 여부")
    id: int = Field(..., description="삭제된 항목 ID")
