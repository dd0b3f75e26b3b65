"""HBS 요약 백엔드 + 대화별 버킷 명령 API."""

from fastapi import APIRouter, HTTPException

from hbs.core.api.schemas import (
    HealthResponse,
    PrepareResponse,
    ResetResponse,
    SettingsRequest,
    StatsResponse,
    StatusResponse,
    SummarizeRequest,
    SummarizeResponse,
    TurnsRequest,
)
from hbs.core.buckets.models import eligible_turns
from hbs.core.buckets.view import to_messages
from hbs.core.config import settings
from hbs.core.errors import (
    BuildInProgressError,
    ConfigurationError,
    EmptyResultError,
    HBSError,
    InvalidArgumentError,
    TransportError,
    error_payload,
)
from hbs.core.logging import setup_logger
from hbs.core.service import HBSService
from hbs.core.summarizer import LLMSummarizer

logger = setup_logger("HBSRouter")

_STATUS_BY_ERROR = (
    (InvalidArgumentError, 400),
    (BuildInProgressError, 409),
    (ConfigurationError, 503),
    (TransportError, 502),
    (EmptyResultError, 502),
)


def to_http_exception(exc: HBSError) -> HTTPException:
    """HBS 오류 → HTTP 상태 코드. 분류되지 않은 HBSError는 500."""
    status = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    return HTTPException(status_code=status, detail=error_payload(exc))


def create_hbs_router(service: HBSService, summarizer: LLMSummarizer) -> APIRouter:
    """
    - GET  /v1/hbs/health                  : 요약 백엔드 설정 상태
    - POST /v1/hbs/summarize               : leaf/merge 요약 단건
    - POST /v1/hbs/sessions/{id}/prepare   : 생성 직전 인터셉터 (가상 뷰)
    - POST /v1/hbs/sessions/{id}/build     : 강제 빌드
    - POST /v1/hbs/sessions/{id}/rebuild   : 전체 재요약 (실패 시 원복)
    - POST /v1/hbs/sessions/{id}/reset     : 버킷 삭제
    - POST /v1/hbs/sessions/{id}/status    : 통계 + dirty 여부
    - POST /v1/hbs/sessions/{id}/settings  : 대화별 설정 변경
    - GET  /v1/hbs/sessions/{id}/debug     : EngineState 원본 (DEV_MODE=true 시만)
    """
    router = APIRouter(prefix="/v1/hbs", tags=["hbs"])

    @router.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        configured = summarizer.configured
        return HealthResponse(
            configured=configured,
            provider=summarizer.provider,
            model=summarizer.model,
            message=(
                "HBS summarizer is configured and ready"
                if configured
                else "HBS summarizer not configured. Set HBS_SUMM_PROVIDER, HBS_SUMM_API_KEY, and HBS_SUMM_MODEL"
            ),
        )

    @router.post("/summarize", response_model=SummarizeResponse)
    async def summarize(req: SummarizeRequest) -> SummarizeResponse:
        logger.info(
            f"[HBSRouter] summarization request: mode={req.mode}, maxWords={req.max_words}, "
            f"textLength={len(req.text)}, meta={req.meta}"
        )
        try:
            result = await summarizer.summarize(req.mode, req.text, req.max_words)
        except HBSError as e:
            logger.error(f"[HBSRouter] summarization error: {e}")
            raise to_http_exception(e)
        return SummarizeResponse(summary=result.text, token_count=result.token_count)

    @router.post("/sessions/{conversation_id}/prepare", response_model=PrepareResponse)
    async def prepare(conversation_id: str, req: TurnsRequest) -> PrepareResponse:
        prepared = await service.prepare_prompt(conversation_id, req.turns, req.context_size)
        if prepared is None:
            # 비활성화 또는 빌드 진행 중 → 원본 대화 그대로
            return PrepareResponse(skipped=True, messages=to_messages(eligible_turns(req.turns)))
        return PrepareResponse(
            messages=to_messages(prepared.view),
            stats=prepared.stats,
            over_budget=prepared.over_budget,
            error=prepared.error,
        )

    @router.post("/sessions/{conversation_id}/build", response_model=StatsResponse)
    async def build(conversation_id: str, req: TurnsRequest) -> StatsResponse:
        try:
            stats = await service.force_build(conversation_id, req.turns)
            if stats is None:
                raise BuildInProgressError(f"build already in progress for {conversation_id}")
        except HBSError as e:
            raise to_http_exception(e)
        return StatsResponse(stats=stats)

    @router.post("/sessions/{conversation_id}/rebuild", response_model=StatsResponse)
    async def rebuild(conversation_id: str, req: TurnsRequest) -> StatsResponse:
        try:
            stats = await service.rebuild(conversation_id, req.turns)
            if stats is None:
                raise BuildInProgressError(f"build already in progress for {conversation_id}")
        except HBSError as e:
            raise to_http_exception(e)
        return StatsResponse(stats=stats)

    @router.post("/sessions/{conversation_id}/reset", response_model=ResetResponse)
    async def reset(conversation_id: str) -> ResetResponse:
        return ResetResponse(reset=await service.reset(conversation_id))

    @router.post("/sessions/{conversation_id}/status", response_model=StatusResponse)
    async def status(conversation_id: str, req: TurnsRequest) -> StatusResponse:
        st = service.status(conversation_id, req.turns)
        return StatusResponse(
            stats=st.stats,
            dirty=st.dirty,
            buckets=st.buckets,
            counts_by_level=st.counts_by_level,
        )

    @router.post("/sessions/{conversation_id}/settings")
    async def update_settings(conversation_id: str, req: SettingsRequest):
        try:
            state = service.update_settings(
                conversation_id,
                chunk_size=req.chunk_size,
                live_window_size=req.live_window_size,
                max_summary_words=req.max_summary_words,
            )
            if req.enabled is not None:
                state = service.set_enabled(conversation_id, req.enabled)
        except HBSError as e:
            raise to_http_exception(e)
        return state.model_dump(exclude={"buckets"})

    if settings.DEV_MODE:
        @router.get("/sessions/{conversation_id}/debug")
        async def debug_session(conversation_id: str):
            """
            개발용 EngineState 스냅샷.
            DEV_MODE=true 일 때만 등록됨 (.env에서 DEV_MODE=false로 비활성화).
            """
            state = service.store.get(conversation_id)
            if state is None:
                raise HTTPException(status_code=404, detail="no HBS state for this conversation")
            return {
                "conversation_id": conversation_id,
                "state": state.model_dump(),
                "busy": state.guard.busy,
            }

    return router
