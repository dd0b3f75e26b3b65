"""
HBSService: 호스트 대화 엔진이 호출하는 명령 계층.

─── 역할 분리 ───────────────────────────────────────────────────────────────
  HBSService     → state 로드·재진입 가드·저장·오류 정책
  BucketManager  → 버킷 빌드/머지/리빌드 알고리즘
  StateStore     → 대화별 EngineState 영속화

─── 명령 목록 ───────────────────────────────────────────────────────────────
  prepare_prompt()  생성 직전 인터셉터. 요약 실패는 삼키고 커밋된 state로 뷰를 만든다.
  force_build()     명시적 빌드. 오류는 그대로 올린다.
  rebuild()         전체 재요약 (실패 시 원복).
  reset()           버킷 삭제.
  status()          대화 열람 시 통계·dirty 여부.

─── 공통 규칙 ───────────────────────────────────────────────────────────────
  1. 입력 turns에서 is_system 턴을 먼저 제외한다.
  2. 빌드 계열 명령은 state.guard 안에서만 실행한다. 이미 진행 중이면 None 반환 (건너뜀).
     설정 변경(set_enabled, update_settings)은 진행 중이면 BuildInProgressError.
  3. state를 바꿀 수 있는 명령은 성공·실패와 무관하게 finally에서 저장한다.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from hbs.core.buckets.accountant import compute_stats
from hbs.core.buckets.bucket_manager import BucketManager, bucket_counts_by_level
from hbs.core.buckets.fingerprint import check_dirty
from hbs.core.buckets.models import Bucket, EngineState, RenderConfig, TokenStats, Turn, eligible_turns
from hbs.core.config import settings
from hbs.core.errors import BuildInProgressError, ConfigurationError, HBSError
from hbs.core.hooks import HookOnError
from hbs.core.logging import setup_logger
from hbs.core.state.stores import InMemoryStateStore
from hbs.core.token_counter import TokenCounter


@dataclass
class PreparedPrompt:
    """prepare_prompt() 결과. over_budget은 보고만 한다 (abort 여부는 호스트가 결정)."""
    view: List[Turn]
    stats: TokenStats
    over_budget: bool = False
    error: Optional[str] = None   # 요약 실패를 삼켰을 때 예외 타입 이름


@dataclass
class ConversationStatus:
    stats: TokenStats
    dirty: bool
    buckets: List[Bucket] = field(default_factory=list)
    counts_by_level: Dict[int, int] = field(default_factory=dict)


class HBSService:
    """
    대화 ID 단위로 BucketManager를 구동한다.

    사용 예시:
        service = HBSService(manager=BucketManager(LLMSummarizer(), TiktokenCounter()))
        prepared = await service.prepare_prompt("chat-1", turns, context_size=8192)
        if prepared is not None:
            messages = to_messages(prepared.view)
    """

    def __init__(
        self,
        manager: BucketManager,
        store: Optional[InMemoryStateStore] = None,
        token_counter: Optional[TokenCounter] = None,
        render: Optional[RenderConfig] = None,
        enabled_globally: Optional[bool] = None,
        on_error: HookOnError = None,
    ):
        self.manager = manager
        self.store = store or InMemoryStateStore()
        self.token_counter = token_counter or manager.token_counter
        self.render = render or RenderConfig.from_settings()
        self.enabled_globally = (
            enabled_globally if enabled_globally is not None else settings.HBS_ENABLED_GLOBALLY
        )
        self._on_error = on_error
        self.logger = setup_logger("HBSService")

    # ── 빌드 계열 ──────────────────────────────────────────────────────────────

    async def prepare_prompt(
        self,
        conversation_id: str,
        turns: List[Turn],
        context_size: Optional[int] = None,
    ) -> Optional[PreparedPrompt]:
        """
        생성 직전 인터셉터. 버킷을 최신으로 맞춘 뒤 가상 뷰를 돌려준다.

        Returns:
            None: 전역/대화 비활성화, 또는 같은 대화의 빌드가 이미 진행 중 (건너뜀)
        """
        if not self.enabled_globally:
            return None

        state = self.store.get_or_create(conversation_id)
        if not state.enabled:
            return None

        async with state.guard.hold() as acquired:
            if not acquired:
                self.logger.debug(f"[HBSService] {conversation_id}: summarization already in progress, skipping")
                return None

            ua_turns = eligible_turns(turns)
            error_name = None
            try:
                await self.manager.ensure_up_to_date(state, ua_turns)
            except HBSError as e:
                # 새 요약 없이 계속 진행: 이미 커밋된 버킷으로 뷰를 만든다
                error_name = type(e).__name__
                self.logger.warning(
                    f"[HBSService] {conversation_id}: {e}. Continuing without new summaries."
                )
                self._fire_on_error(conversation_id, e)
            finally:
                self.store.save_state(conversation_id, state)

            view = self.manager.build_virtual_view(state, ua_turns, self.render)
            stats = compute_stats(state, ua_turns, self.token_counter)
            self.store.save_state(conversation_id, state)

            over_budget = context_size is not None and stats.total_virtual > context_size
            if over_budget:
                self.logger.error(
                    f"[HBSService] {conversation_id}: virtual prompt ({stats.total_virtual} tokens) "
                    f"exceeds context ({context_size}). Reduce live window or message size."
                )

            self.logger.info(
                f"[HBSService] {conversation_id}: virtual chat {len(view)} messages "
                f"(original: {len(turns)})"
            )
            return PreparedPrompt(view=view, stats=stats, over_budget=over_budget, error=error_name)

    async def force_build(self, conversation_id: str, turns: List[Turn]) -> Optional[TokenStats]:
        """
        명시적 빌드. 요약 실패는 그대로 raise (같은 호출에서 이미 만든 버킷은 저장된다).

        Returns:
            빌드 후 통계. 다른 빌드가 진행 중이면 None.
        """
        state = self.store.get_or_create(conversation_id)
        if not state.enabled:
            raise ConfigurationError(f"HBS is disabled for conversation {conversation_id}")

        async with state.guard.hold() as acquired:
            if not acquired:
                self.logger.debug(f"[HBSService] {conversation_id}: build already in progress, skipping")
                return None

            ua_turns = eligible_turns(turns)
            try:
                await self.manager.ensure_up_to_date(state, ua_turns)
            finally:
                self.store.save_state(conversation_id, state)
            return compute_stats(state, ua_turns, self.token_counter)

    async def rebuild(self, conversation_id: str, turns: List[Turn]) -> Optional[TokenStats]:
        """전체 재요약. 실패하면 state는 호출 전과 동일하다."""
        state = self.store.get_or_create(conversation_id)

        async with state.guard.hold() as acquired:
            if not acquired:
                self.logger.debug(f"[HBSService] {conversation_id}: build already in progress, skipping")
                return None

            ua_turns = eligible_turns(turns)
            try:
                await self.manager.rebuild_all(state, ua_turns)
            finally:
                self.store.save_state(conversation_id, state)
            return compute_stats(state, ua_turns, self.token_counter)

    async def reset(self, conversation_id: str) -> bool:
        """
        버킷 삭제. 빌드 중에는 건너뛴다.

        Returns:
            False: state가 없거나 빌드 진행 중
        """
        state = self.store.get(conversation_id)
        if state is None:
            return False

        async with state.guard.hold() as acquired:
            if not acquired:
                return False
            self.manager.reset(state)
            self.store.save_state(conversation_id, state)
            return True

    # ── 조회·설정 ──────────────────────────────────────────────────────────────

    def status(self, conversation_id: str, turns: List[Turn]) -> ConversationStatus:
        """대화 열람 시 호출. state가 없으면 만들고, 통계와 dirty 여부를 돌려준다."""
        state = self.store.get_or_create(conversation_id)
        ua_turns = eligible_turns(turns)

        stats = compute_stats(state, ua_turns, self.token_counter)
        dirty = check_dirty(state, ua_turns, state.history_end(len(ua_turns)))
        self.store.save_state(conversation_id, state)

        return ConversationStatus(
            stats=stats,
            dirty=dirty,
            buckets=sorted(state.buckets, key=lambda b: b.start),
            counts_by_level=bucket_counts_by_level(state),
        )

    def set_enabled(self, conversation_id: str, enabled: bool) -> EngineState:
        state = self.store.get_or_create(conversation_id)
        self._ensure_idle(conversation_id, state)
        state.enabled = enabled
        self.store.save_state(conversation_id, state)
        return state

    def update_settings(
        self,
        conversation_id: str,
        *,
        chunk_size: Optional[int] = None,
        live_window_size: Optional[int] = None,
        max_summary_words: Optional[int] = None,
    ) -> EngineState:
        """
        대화별 설정 변경. 잘못된 값이면 state를 건드리지 않고 InvalidArgumentError.
        빌드 진행 중이면 BuildInProgressError (설정은 빌드 사이에만 바뀐다).

        live_window_size를 줄이면 일부 live 턴이 remainder로 재분류될 뿐 즉시 리빌드하지 않는다.
        늘리면 다음 뷰 조합 시 shrink-clamp가 일어난다.
        """
        state = self.store.get_or_create(conversation_id)
        self._ensure_idle(conversation_id, state)
        candidate = state.model_copy(
            update={
                k: v
                for k, v in {
                    "chunk_size": chunk_size,
                    "live_window_size": live_window_size,
                    "max_summary_words": max_summary_words,
                }.items()
                if v is not None
            }
        )
        candidate.validate_config()

        state.chunk_size = candidate.chunk_size
        state.live_window_size = candidate.live_window_size
        state.max_summary_words = candidate.max_summary_words
        self.store.save_state(conversation_id, state)
        return state

    # ── Internal ───────────────────────────────────────────────────────────────

    def _ensure_idle(self, conversation_id: str, state: EngineState) -> None:
        """동기 명령용 가드 확인. 확인과 변경 사이에 await가 없으므로 빌드와 겹치지 않는다."""
        if state.guard.busy:
            raise BuildInProgressError(f"build already in progress for {conversation_id}")

    def _fire_on_error(self, conversation_id: str, exc: Exception) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(conversation_id, exc)
        except Exception as hook_exc:
            self.logger.warning(f"[HBSService] on_error hook failed: {hook_exc}")
