"""
훅(Hook) 타입 정의.

─── 훅 종류 ──────────────────────────────────────────────────────────────────
  on_event (HookOnEvent):
      BucketManager의 state 전이 직후 호출되는 동기 콜백. 대시보드 갱신이나 감사 로그용.
      시그니처: (event: EventType, payload: dict) → None
      훅에서 발생한 예외는 로그만 남기고 빌드를 중단시키지 않는다.

  on_error (HookOnError):
      HBSService.prepare_prompt()가 요약 실패를 삼킬 때 호출.
      시그니처: (conversation_id: str, exception: Exception) → None
      호스트는 여기서 토스트·재시도 예약 등을 결정한다.
"""

from typing import Any, Callable, Optional

HookOnEvent = Optional[Callable[[Any, dict], None]]      # (EventType, payload) → None
HookOnError = Optional[Callable[[str, Exception], None]] # (conversation_id, exc) → None
