"""HBS HTTP API Request/Response 스키마."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from hbs.core.buckets.models import Bucket, TokenStats, Turn


class HealthResponse(BaseModel):
    ok: bool = True
    configured: bool
    provider: str = ""
    model: str = ""
    message: str = ""


class SummarizeRequest(BaseModel):
    """요약 백엔드 단건 호출."""
    mode: Literal["leaf", "merge"] = Field(..., description='"leaf" | "merge"')
    text: str = Field(..., min_length=1, description="요약할 원문")
    max_words: int = Field(120, ge=1, description="요약 단어 상한")
    meta: Dict[str, Any] = Field(default_factory=dict, description="로그용 부가 정보 (chat_id, range 등)")


class SummarizeResponse(BaseModel):
    success: bool = True
    summary: str
    token_count: int = 0


class TurnsRequest(BaseModel):
    """대화 전체 턴. is_system 턴이 섞여 있어도 서버에서 제외한다."""
    turns: List[Turn] = Field(default_factory=list)
    context_size: Optional[int] = Field(None, ge=1, description="prepare 전용: 초과 여부만 보고")


class PrepareResponse(BaseModel):
    skipped: bool = False
    messages: List[Dict[str, str]] = Field(default_factory=list, description="[{role, content}] 가상 뷰")
    stats: Optional[TokenStats] = None
    over_budget: bool = False
    error: Optional[str] = None


class StatsResponse(BaseModel):
    stats: TokenStats


class StatusResponse(BaseModel):
    stats: TokenStats
    dirty: bool
    buckets: List[Bucket] = Field(default_factory=list)
    counts_by_level: Dict[int, int] = Field(default_factory=dict)


class SettingsRequest(BaseModel):
    enabled: Optional[bool] = None
    chunk_size: Optional[int] = None
    live_window_size: Optional[int] = None
    max_summary_words: Optional[int] = None


class ResetResponse(BaseModel):
    reset: bool
