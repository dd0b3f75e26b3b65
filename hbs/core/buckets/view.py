"""
가상 대화 뷰 조합.

반환 구조 (순서 고정: 소비자가 시간순 서사로 읽는다):
  1. [요약 블록]     버킷이 하나라도 있을 때만. start 오름차순 요약을 빈 줄로 이어 템플릿에 치환.
  2. [remainder]    [processed_until, history_end) 원문
  3. [live window]  [history_end, N) 원문

2·3의 원소는 호출자가 넘긴 Turn 객체 그대로다 (복사하지 않음).
"""

from typing import Dict, List

from hbs.core.buckets.fingerprint import clamp_to_history_end
from hbs.core.buckets.models import SUMMARY_PLACEHOLDER, EngineState, RenderConfig, Turn

_SUMMARY_NAMES = {"system": "System", "user": "User", "assistant": "HBS Summary"}


def build_summary_turn(state: EngineState, render: RenderConfig) -> Turn:
    summaries = "\n\n".join(b.summary for b in sorted(state.buckets, key=lambda b: b.start))
    role = render.injection_role
    return Turn(
        text=render.injection_template.replace(SUMMARY_PLACEHOLDER, summaries),
        is_user=role == "user",
        is_system=role == "system",
        name=_SUMMARY_NAMES[role],
    )


def build_virtual_view(
    state: EngineState, turns: List[Turn], render: RenderConfig | None = None
) -> List[Turn]:
    render = render or RenderConfig.from_settings()
    history_end = state.history_end(len(turns))

    # processed_until > history_end 이면 먼저 잘라낸다
    clamp_to_history_end(state, history_end)

    view: List[Turn] = []
    if state.buckets:
        view.append(build_summary_turn(state, render))

    view.extend(turns[state.processed_until:history_end])
    view.extend(turns[history_end:])
    return view


def to_messages(view: List[Turn]) -> List[Dict[str, str]]:
    """프롬프트 빌더용 [{"role": ..., "content": ...}] 형식으로 변환."""
    return [{"role": t.role, "content": t.text} for t in view]
