"""
BucketManager가 state 전이 직후 on_event 훅으로 전달하는 이벤트 타입 상수.

이벤트는 항상 on_event(EventType, payload: dict) 형태로 호출된다.
호출 순서는 state 변경 순서와 같다 (요약 호출은 순차 실행되므로 인터리빙 없음).

────────────────────────────────────────────────────────
  N=5, chunk_size=2, live_window_size=1 한 번의 빌드 예시:

  LEAF_CREATED    {"level": 0, "start": 0, "end": 2, ...}
  LEAF_CREATED    {"level": 0, "start": 2, "end": 4, ...}
  BUCKETS_MERGED  {"level": 1, "start": 0, "end": 4, "merged": [[0, 2], [2, 4]]}
────────────────────────────────────────────────────────
"""

from enum import Enum


class EventType(str, Enum):
    # ── 빌드 ─────────────────────────────────────────────────────────────────
    LEAF_CREATED = "LEAF_CREATED"
    """
    level-0 버킷 생성 직후. processed_until이 이미 end로 전진한 상태.

    payload 필드:
      level, start, end   새 버킷의 범위
      summary_tokens int  요약 토큰 수
    """

    BUCKETS_MERGED = "BUCKETS_MERGED"
    """
    캐리 머지 한 단계 완료.

    payload 필드:
      level, start, end   새(상위) 버킷의 범위
      merged  list        합쳐진 두 버킷의 [start, end] 쌍
    """

    # ── 상태 전이 ─────────────────────────────────────────────────────────────
    HISTORY_CLAMPED = "HISTORY_CLAMPED"
    """
    live window가 커지거나 히스토리가 잘려 history_end가 뒤로 이동.

    payload 필드:
      history_end      int  새 history_end
      processed_until  int  잘라낸 뒤의 processed_until
      dropped          int  버려진 버킷 수
    """

    REBUILD_DONE = "REBUILD_DONE"
    """payload: {"before": 이전 버킷 수, "after": 새 버킷 수}"""

    REBUILD_FAILED = "REBUILD_FAILED"
    """payload: {"error": 예외 타입 이름}. state는 이미 스냅샷으로 복원된 상태."""

    STATE_RESET = "STATE_RESET"
    """payload: {}"""
