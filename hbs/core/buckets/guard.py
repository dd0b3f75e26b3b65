"""
대화 단위 재진입 가드.

같은 EngineState에 대해 빌드/머지/리빌드는 한 번에 하나만 실행된다.
진행 중에 들어온 두 번째 호출은 대기열에 넣지도, 동시에 실행하지도 않고 그냥 건너뛴다.

    async with state.guard.hold() as acquired:
        if not acquired:
            return None          # 이미 다른 빌드가 진행 중
        await manager.ensure_up_to_date(state, turns)

asyncio 단일 스레드 전제: 플래그 확인과 설정 사이에 await가 없으므로 별도 락이 필요 없다.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator


class BuildGuard:
    """EngineState 하나가 소유하는 in-flight 플래그."""

    def __init__(self):
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[bool]:
        if self._busy:
            yield False
            return
        self._busy = True
        try:
            yield True
        finally:
            self._busy = False
