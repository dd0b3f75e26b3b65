"""
요약된 히스토리의 변경 감지와 history_end 후퇴 처리.

─── fingerprint ─────────────────────────────────────────────────────────────
  [0, history_end) 턴 텍스트를 "|||"로 이어 붙인 SHA-256 hex.
  턴별 버전 추적 없이 "이미 요약된 구간이 수정·삭제되었는가"만 판단한다.
  live window 안의 수정은 해시 범위 밖이라 dirty를 만들지 않는다.

─── shrink-clamp ────────────────────────────────────────────────────────────
  live window가 커지거나 히스토리가 잘려 processed_until > history_end가 되면
  end > history_end인 버킷을 모두 버리고 processed_until을 마지막 생존 버킷의 end로 되돌린다.
  에러가 아닌 의도된 state 전이이며, 항상 warning 로그를 남긴다.
"""

import hashlib
from typing import List

from hbs.core.buckets.models import EngineState, Turn
from hbs.core.logging import setup_logger

_SEPARATOR = "|||"

logger = setup_logger("FingerprintGuard")


def compute_fingerprint(turns: List[Turn], history_end: int) -> str:
    if history_end <= 0 or not turns:
        return ""
    joined = _SEPARATOR.join(t.text or "" for t in turns[:history_end])
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()


def check_dirty(state: EngineState, turns: List[Turn], history_end: int) -> bool:
    """
    요약된 히스토리가 바뀌었는지 판단한다.

    Returns:
        True면 rebuild 권장. 저장된 fingerprint가 없으면 현재 값을 기준점으로 저장하고 False.
    """
    current = compute_fingerprint(turns, history_end)

    if not state.fingerprint:
        state.fingerprint = current
        return False

    if state.processed_until > 0 and current != state.fingerprint:
        logger.info(
            f"[FingerprintGuard] history changed under processed_until={state.processed_until}, marking dirty"
        )
        state.dirty = True
        return True

    return state.dirty


def clamp_to_history_end(state: EngineState, history_end: int) -> bool:
    """
    processed_until이 history_end를 넘으면 state를 잘라낸다.

    Returns:
        clamp가 일어났으면 True.
    """
    if state.processed_until <= history_end:
        return False

    before = len(state.buckets)
    state.buckets = [b for b in state.buckets if b.end <= history_end]
    state.processed_until = max((b.end for b in state.buckets), default=0)
    state.dirty = True

    dropped = before - len(state.buckets)
    logger.warning(
        f"[FingerprintGuard] history end moved backwards to {history_end}: "
        f"dropped {dropped} bucket(s), processed_until → {state.processed_until}"
    )
    return True
