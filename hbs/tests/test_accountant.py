"""구역별 토큰 통계 테스트."""

from hbs.core.buckets.accountant import compute_stats, count_tokens_for_turns
from hbs.core.buckets.models import Bucket, Turn
from hbs.tests.mock_llm import ConstantTokenCounter, make_turns


def test_stats_split_zones(make_state):
    state = make_state(chunk_size=2, live_window_size=3, processed_until=4)
    state.buckets = [Bucket(level=1, start=0, end=4, summary="s", summary_tokens=11)]
    turns = make_turns(10)   # history_end = 7

    stats = compute_stats(state, turns, ConstantTokenCounter(per_text=2))

    assert stats.bucket_tokens == 11
    assert stats.remainder_tokens == 3 * 2
    assert stats.live_tokens == 3 * 2
    assert stats.total_virtual == 11 + 6 + 6
    assert (stats.processed_until, stats.history_end, stats.total_messages) == (4, 7, 10)
    assert stats.buckets_count == 1
    assert stats.live_window == 3


def test_stats_when_live_window_exceeds_history(make_state):
    state = make_state(live_window_size=20)

    stats = compute_stats(state, make_turns(4), ConstantTokenCounter())

    assert stats.history_end == 0
    assert stats.remainder_tokens == 0
    assert stats.live_tokens == 4
    assert stats.live_window == 4


def test_empty_texts_are_not_counted():
    turns = [Turn(text="", is_user=True), Turn(text="x", is_user=False)]

    assert count_tokens_for_turns(turns, ConstantTokenCounter(per_text=5)) == 5
