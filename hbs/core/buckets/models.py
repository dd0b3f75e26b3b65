"""
버킷 엔진의 데이터 모델.

─── 구간 표기 ────────────────────────────────────────────────────────────────
  eligible turns (길이 N)
  ┌──────────────────────┬──────────────────┬──────────────────────┐
  │ buckets (요약 완료)   │ remainder (원문)  │ live window (원문)    │
  └──────────────────────┴──────────────────┴──────────────────────┘
  0               processed_until      history_end                 N

  history_end = max(0, N - live_window_size)
  live window는 절대 요약되지 않는다. remainder는 chunk_size 미만이라 아직 접히지 않은 구간.

─── 영속화 ──────────────────────────────────────────────────────────────────
  EngineState.model_dump()가 저장 포맷이다. 호출자는 변경 연산마다 저장한다.
  재진입 가드(BuildGuard)는 private attribute라 직렬화되지 않는다.
"""

import time
from typing import List, Optional

from pydantic import BaseModel, Field, PrivateAttr, model_validator

from hbs.core.buckets.guard import BuildGuard
from hbs.core.config import settings
from hbs.core.errors import InvalidArgumentError

SUMMARY_PLACEHOLDER = "{{summary}}"


def _now_ms() -> int:
    return int(time.time() * 1000)


class Turn(BaseModel):
    """대화 한 항목. is_system=True인 항목은 eligible_turns()에서 제외된다."""

    text: str = ""
    is_user: bool
    is_system: bool = False
    name: Optional[str] = None

    @property
    def role(self) -> str:
        if self.is_system:
            return "system"
        return "user" if self.is_user else "assistant"


def eligible_turns(turns: List[Turn]) -> List[Turn]:
    """user/assistant 대화만 남긴다. 순서와 객체 동일성은 유지된다."""
    return [t for t in turns if not t.is_system]


class Bucket(BaseModel):
    """
    eligible turns의 [start, end) 구간을 접은 요약.

    level 0은 chunk_size개 턴의 leaf 요약, level k는 leaf 2^k개 분량의 머지 요약.
    """

    level: int = 0
    start: int
    end: int
    summary: str
    summary_tokens: int = 0
    created_at: int = Field(default_factory=_now_ms)

    @model_validator(mode="after")
    def _check_range(self) -> "Bucket":
        if self.level < 0:
            raise ValueError(f"bucket level must be >= 0, got {self.level}")
        if self.start >= self.end:
            raise ValueError(f"bucket range must be non-empty, got [{self.start}, {self.end})")
        return self

    @property
    def size(self) -> int:
        return self.end - self.start


class EngineState(BaseModel):
    """
    대화 하나가 독점 소유하는 버킷 엔진 상태.

    ─── 필드 설명 ───────────────────────────────────────────────────
    enabled            False면 인터셉터가 아무것도 하지 않는다
    chunk_size         leaf 버킷 하나에 접히는 턴 수 (>= 1)
    live_window_size   원문 유지할 최근 턴 수 (>= 1)
    max_summary_words  요약 한 건의 단어 상한
    processed_until    [0, processed_until) 구간이 버킷으로 덮여 있음.
                       단조 증가. 예외는 reset과 shrink-clamp뿐.
    buckets            생성 순서(스택) 그대로. 정렬은 뷰 조합 시에만 한다.
    dirty              요약된 히스토리가 수정된 것으로 감지됨 → rebuild 권장
    fingerprint        [0, history_end) 턴 텍스트의 해시. ""면 기준점 없음.
    """

    version: int = 1
    enabled: bool = True
    chunk_size: int = 8
    live_window_size: int = 12
    max_summary_words: int = 120
    processed_until: int = 0
    buckets: List[Bucket] = Field(default_factory=list)
    dirty: bool = False
    fingerprint: str = ""

    _guard: BuildGuard = PrivateAttr(default_factory=BuildGuard)

    @property
    def guard(self) -> BuildGuard:
        return self._guard

    def history_end(self, total: int) -> int:
        return max(0, total - self.live_window_size)

    def validate_config(self) -> None:
        """잘못된 설정은 요약 호출 전에 즉시 실패시킨다."""
        if self.chunk_size <= 0:
            raise InvalidArgumentError(f"chunk_size must be >= 1, got {self.chunk_size}")
        if self.live_window_size <= 0:
            raise InvalidArgumentError(f"live_window_size must be >= 1, got {self.live_window_size}")
        if self.max_summary_words <= 0:
            raise InvalidArgumentError(f"max_summary_words must be >= 1, got {self.max_summary_words}")


def create_state(**overrides) -> EngineState:
    """설정 기본값(HBS_DEFAULT_*)에 overrides를 얹어 새 state를 만든다."""
    values = {
        "chunk_size": settings.HBS_DEFAULT_CHUNK_SIZE,
        "live_window_size": settings.HBS_DEFAULT_LIVE_WINDOW,
        "max_summary_words": settings.HBS_DEFAULT_MAX_SUMMARY_WORDS,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    state = EngineState(**values)
    state.validate_config()
    return state


class RenderConfig(BaseModel):
    """요약 블록을 뷰에 주입하는 방식."""

    injection_template: str = "[Summary of earlier conversation:]\n" + SUMMARY_PLACEHOLDER
    injection_role: str = "system"

    @model_validator(mode="after")
    def _check_render(self) -> "RenderConfig":
        # 생성자·model_validate 모두 pydantic ValidationError(ValueError 하위)로 실패한다
        if SUMMARY_PLACEHOLDER not in self.injection_template:
            raise ValueError(f"injection_template must contain {SUMMARY_PLACEHOLDER}")
        if self.injection_role not in ("system", "user", "assistant"):
            raise ValueError(
                f"injection_role must be one of system|user|assistant, got {self.injection_role!r}"
            )
        return self

    @classmethod
    def from_settings(cls) -> "RenderConfig":
        return cls(
            injection_template=settings.HBS_INJECTION_TEMPLATE,
            injection_role=settings.HBS_INJECTION_ROLE,
        )


class TokenStats(BaseModel):
    """TokenAccountant 결과. 보고 전용이며 예산 강제는 호출자 몫이다."""

    bucket_tokens: int = 0
    remainder_tokens: int = 0
    live_tokens: int = 0
    total_virtual: int = 0
    processed_until: int = 0
    history_end: int = 0
    total_messages: int = 0
    buckets_count: int = 0
    live_window: int = 0
