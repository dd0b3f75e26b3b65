"""leaf/merge 요약 호출에 넘기는 입력 텍스트 포맷."""

from typing import List

from hbs.core.buckets.models import Turn


def format_turns_for_leaf(turns: List[Turn]) -> str:
    """
    "U: ..." / "A: ..." 줄을 빈 줄로 이어 붙인다.

        U: 안녕

        A: 무엇을 도와드릴까요?
    """
    return "\n\n".join(
        f"{'U' if t.is_user else 'A'}: {(t.text or '').strip()}"
        for t in turns
    )


def format_summaries_for_merge(first: str, second: str) -> str:
    return f"S1: {first}\n\nS2: {second}"
