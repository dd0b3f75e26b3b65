"""
대화별 EngineState 인메모리 저장소.

프로덕션 환경에서는 Redis·RDB·채팅 메타데이터 기반 구현으로 교체 가능.
HBSService가 기대하는 인터페이스:
  - get(conversation_id) → EngineState | None
  - get_or_create(conversation_id) → EngineState
  - save_state(conversation_id, state)
  - reset(conversation_id)

엔진은 자체 저장소를 갖지 않는다. 변경 연산 후 save_state() 호출은 HBSService의 책임이다.
저장은 model_dump() 스냅샷으로 한다. 살아 있는 state 객체(가드 포함)는 프로세스 안에서만 공유된다.
"""

from typing import Any, Callable, Dict, Optional

from hbs.core.buckets.models import EngineState, create_state


class InMemoryStateStore:
    """
    사용법:
        store = InMemoryStateStore()                                   # HBS_DEFAULT_* 기본값
        store = InMemoryStateStore(state_factory=lambda: create_state(chunk_size=4))
    """

    def __init__(self, state_factory: Optional[Callable[[], EngineState]] = None):
        self._live: Dict[str, EngineState] = {}
        self._persisted: Dict[str, Dict[str, Any]] = {}
        self._state_factory = state_factory or create_state
        self.save_count = 0

    def get(self, conversation_id: str) -> Optional[EngineState]:
        if conversation_id in self._live:
            return self._live[conversation_id]
        if conversation_id in self._persisted:
            state = EngineState.model_validate(self._persisted[conversation_id])
            self._live[conversation_id] = state
            return state
        return None

    def get_or_create(self, conversation_id: str) -> EngineState:
        state = self.get(conversation_id)
        if state is None:
            state = self._state_factory()
            self._live[conversation_id] = state
            self.save_state(conversation_id, state)
        return state

    def save_state(self, conversation_id: str, state: EngineState) -> None:
        self._live[conversation_id] = state
        self._persisted[conversation_id] = state.model_dump()
        self.save_count += 1

    def load_snapshot(self, conversation_id: str) -> Optional[Dict[str, Any]]:
        """마지막으로 저장된 직렬화 스냅샷. 디버그·테스트용."""
        return self._persisted.get(conversation_id)

    def reset(self, conversation_id: str) -> None:
        """대화 state 완전 삭제 (설정값 포함)."""
        self._live.pop(conversation_id, None)
        self._persisted.pop(conversation_id, None)
