"""
계층형 버킷 요약: 이진 카운터 캐리 패턴.

─── 빌드 흐름 ────────────────────────────────────────────────────────────────
  history_end = max(0, N - live_window_size)
      ↓
  processed_until + chunk_size <= history_end 인 동안:
      [processed_until, +chunk_size) 원문 → Summarizer("leaf") → level-0 버킷 push
      processed_until 전진
      merge_cascade(): 스택 top 두 버킷이 같은 level이고 맞닿아 있으면 → Summarizer("merge") → level+1
      ↓
  fingerprint 재계산, dirty 해제

  leaf 1개 추가 = 카운터 +1, 머지 = 캐리.
  따라서 level당 버킷은 최대 1개, 전체 버킷 수는 O(log(processed_until / chunk_size)).

─── 실패 시 ──────────────────────────────────────────────────────────────────
  ensure_up_to_date(): 요약 실패는 즉시 raise. 같은 호출에서 이미 만든 버킷은 그대로 남는다.
  merge_cascade():     pop한 두 버킷은 복구되지 않는다 (rebuild 스냅샷이 유일한 복원 수단).
  rebuild_all():       어떤 실패든 스냅샷으로 state를 정확히 되돌린 뒤 raise (all-or-nothing).

─── 동시성 ───────────────────────────────────────────────────────────────────
  요약 호출은 반드시 순차 await. 병렬로 보내면 LIFO 머지 순서(= 캐리 불변식)가 깨진다.
  같은 state에 대한 재진입 방지는 호출자가 state.guard로 처리한다 (HBSService 참고).
"""

from typing import Dict, List

from hbs.core.buckets.fingerprint import clamp_to_history_end, compute_fingerprint
from hbs.core.buckets.formatting import format_summaries_for_merge, format_turns_for_leaf
from hbs.core.buckets.models import Bucket, EngineState, RenderConfig, Turn
from hbs.core.buckets.view import build_virtual_view
from hbs.core.events import EventType
from hbs.core.hooks import HookOnEvent
from hbs.core.logging import setup_logger
from hbs.core.summarizer import LEAF, MERGE, Summarizer, SummaryResult
from hbs.core.token_counter import TokenCounter


def reset_state(state: EngineState) -> None:
    """버킷과 진행 상태만 초기화한다. chunk_size 등 설정값은 유지."""
    state.processed_until = 0
    state.buckets = []
    state.dirty = False
    state.fingerprint = ""


def bucket_counts_by_level(state: EngineState) -> Dict[int, int]:
    counts: Dict[int, int] = {}
    for bucket in state.buckets:
        counts[bucket.level] = counts.get(bucket.level, 0) + 1
    return counts


class BucketManager:
    """
    EngineState를 받아 버킷 스택을 최신으로 유지하는 엔진.

    state는 인자로만 받고 보관하지 않는다. 여러 대화가 하나의 BucketManager를 공유해도 된다.

    사용 예시:
        manager = BucketManager(summarizer=LLMSummarizer(), token_counter=TiktokenCounter())
        await manager.ensure_up_to_date(state, turns)
        view = manager.build_virtual_view(state, turns, RenderConfig())
    """

    def __init__(
        self,
        summarizer: Summarizer,
        token_counter: TokenCounter,
        on_event: HookOnEvent = None,
    ):
        """
        Args:
            summarizer:    leaf/merge 요약 협력자
            token_counter: 요약 결과에 토큰 수가 없을 때 사용
            on_event:      state 전이 직후 호출되는 훅 (hbs.core.events 참고)
        """
        self.summarizer = summarizer
        self.token_counter = token_counter
        self.on_event = on_event
        self.logger = setup_logger("BucketManager")

    # ── Public API ─────────────────────────────────────────────────────────────

    async def ensure_up_to_date(self, state: EngineState, turns: List[Turn]) -> int:
        """
        접을 수 있는 구간을 모두 leaf 버킷으로 만들고 캐리 머지까지 끝낸다.

        Args:
            state: 대화 state (in-place 수정됨)
            turns: eligible turns (is_system 턴은 호출자가 미리 제외)

        Returns:
            이번 호출에서 수행한 요약 호출 수. 새 턴이 없으면 0.

        Raises:
            InvalidArgumentError: chunk_size / live_window_size가 양수가 아님
            ConfigurationError, TransportError, EmptyResultError: Summarizer 실패
        """
        state.validate_config()
        history_end = state.history_end(len(turns))
        # 한 번의 빌드 동안 설정값은 고정. leaf 크기가 섞이면 level k = leaf 2^k개 관계가 깨진다
        chunk_size = state.chunk_size
        max_words = state.max_summary_words
        calls = 0

        self.logger.info(
            f"[BucketManager] bucket check: processedUntil={state.processed_until}, "
            f"historyEnd={history_end}, total={len(turns)}, chunkSize={chunk_size}"
        )

        while state.processed_until + chunk_size <= history_end:
            start = state.processed_until
            end = start + chunk_size

            self.logger.info(f"[BucketManager] creating leaf bucket: [{start}-{end})")
            result = await self.summarizer.summarize(
                LEAF, format_turns_for_leaf(turns[start:end]), max_words
            )
            calls += 1

            bucket = Bucket(
                level=0,
                start=start,
                end=end,
                summary=result.text,
                summary_tokens=self._summary_tokens(result),
            )
            state.buckets.append(bucket)
            state.processed_until = end
            self._emit(EventType.LEAF_CREATED, self._bucket_payload(bucket))

            calls += await self.merge_cascade(state)

        state.fingerprint = compute_fingerprint(turns, history_end)
        state.dirty = False
        return calls

    async def merge_cascade(self, state: EngineState) -> int:
        """
        스택 top 두 버킷이 같은 level이고 맞닿아 있는 동안 하나로 합친다.

        Returns:
            수행한 merge 요약 호출 수
        """
        calls = 0
        while len(state.buckets) >= 2:
            first, second = state.buckets[-2], state.buckets[-1]
            if first.level != second.level or first.end != second.start:
                break

            self.logger.info(
                f"[BucketManager] merging buckets: L{first.level} "
                f"[{first.start}-{first.end}) + [{second.start}-{second.end})"
            )
            state.buckets.pop()
            state.buckets.pop()

            result = await self.summarizer.summarize(
                MERGE,
                format_summaries_for_merge(first.summary, second.summary),
                state.max_summary_words,
            )
            calls += 1

            merged = Bucket(
                level=first.level + 1,
                start=first.start,
                end=second.end,
                summary=result.text,
                summary_tokens=self._summary_tokens(result),
            )
            state.buckets.append(merged)
            self.logger.info(f"[BucketManager] merged to: L{merged.level} [{merged.start}-{merged.end})")
            self._emit(
                EventType.BUCKETS_MERGED,
                {
                    **self._bucket_payload(merged),
                    "merged": [[first.start, first.end], [second.start, second.end]],
                },
            )
        return calls

    async def rebuild_all(self, state: EngineState, turns: List[Turn]) -> int:
        """
        state를 비우고 전체 히스토리를 처음부터 다시 요약한다.
        실패하면 state를 재빌드 이전 값으로 정확히 되돌리고 예외를 다시 올린다.
        """
        snapshot = {
            "processed_until": state.processed_until,
            "buckets": list(state.buckets),
            "dirty": state.dirty,
            "fingerprint": state.fingerprint,
        }
        before = len(state.buckets)
        reset_state(state)

        try:
            calls = await self.ensure_up_to_date(state, turns)
        except BaseException as e:
            # 작업 취소(CancelledError)도 실패로 취급해 스냅샷을 복원한다
            self.logger.error(f"[BucketManager] rebuild failed, restoring old state: {type(e).__name__} {e}")
            state.processed_until = snapshot["processed_until"]
            state.buckets = snapshot["buckets"]
            state.dirty = snapshot["dirty"]
            state.fingerprint = snapshot["fingerprint"]
            self._emit(EventType.REBUILD_FAILED, {"error": type(e).__name__})
            raise

        self.logger.info(f"[BucketManager] rebuilt buckets: {before} → {len(state.buckets)}")
        self._emit(EventType.REBUILD_DONE, {"before": before, "after": len(state.buckets)})
        return calls

    def reset(self, state: EngineState) -> None:
        reset_state(state)
        self.logger.info("[BucketManager] state reset")
        self._emit(EventType.STATE_RESET, {})

    def clamp(self, state: EngineState, history_end: int) -> bool:
        """shrink-clamp + HISTORY_CLAMPED 이벤트."""
        before = len(state.buckets)
        if not clamp_to_history_end(state, history_end):
            return False
        self._emit(
            EventType.HISTORY_CLAMPED,
            {
                "history_end": history_end,
                "processed_until": state.processed_until,
                "dropped": before - len(state.buckets),
            },
        )
        return True

    def build_virtual_view(
        self, state: EngineState, turns: List[Turn], render: RenderConfig | None = None
    ) -> List[Turn]:
        """clamp 이벤트를 발행한 뒤 뷰를 조합한다. 조합 규칙은 view.build_virtual_view 참고."""
        self.clamp(state, state.history_end(len(turns)))
        return build_virtual_view(state, turns, render)

    # ── Internal ───────────────────────────────────────────────────────────────

    def _summary_tokens(self, result: SummaryResult) -> int:
        if result.token_count and result.token_count > 0:
            return result.token_count
        return self.token_counter.count_tokens(result.text)

    @staticmethod
    def _bucket_payload(bucket: Bucket) -> dict:
        return {
            "level": bucket.level,
            "start": bucket.start,
            "end": bucket.end,
            "summary_tokens": bucket.summary_tokens,
        }

    def _emit(self, event: EventType, payload: dict) -> None:
        if self.on_event is None:
            return
        try:
            self.on_event(event, payload)
        except Exception as e:
            # 훅 실패가 이미 커밋된 state 전이를 되돌리면 안 된다
            self.logger.warning(f"[BucketManager] on_event hook failed for {event.value}: {e}")
