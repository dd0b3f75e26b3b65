"""구역별 토큰 합계. 보고만 하고 예산을 강제하지 않는다 (초과 시 abort/retry는 호출자 결정)."""

from typing import List

from hbs.core.buckets.models import EngineState, TokenStats, Turn
from hbs.core.token_counter import TokenCounter


def count_tokens_for_turns(turns: List[Turn], counter: TokenCounter) -> int:
    """턴 텍스트 토큰 합계. 빈 텍스트는 건너뛴다."""
    return sum(counter.count_tokens(t.text) for t in turns if t.text)


def compute_stats(state: EngineState, turns: List[Turn], counter: TokenCounter) -> TokenStats:
    history_end = state.history_end(len(turns))

    bucket_tokens = sum(b.summary_tokens or 0 for b in state.buckets)
    remainder_tokens = count_tokens_for_turns(turns[state.processed_until:history_end], counter)
    live_tokens = count_tokens_for_turns(turns[history_end:], counter)

    return TokenStats(
        bucket_tokens=bucket_tokens,
        remainder_tokens=remainder_tokens,
        live_tokens=live_tokens,
        total_virtual=bucket_tokens + remainder_tokens + live_tokens,
        processed_until=state.processed_until,
        history_end=history_end,
        total_messages=len(turns),
        buckets_count=len(state.buckets),
        live_window=len(turns) - history_end,
    )
