"""
요약 백엔드용 LLM 프로바이더 추상화 인터페이스.

모든 프로바이더(OpenAI 호환, Anthropic)는 이 인터페이스를 구현한다.
LLMSummarizer는 BaseLLMClient만 사용하므로 프로바이더 교체가 투명하다.

─── 설계 원칙 ────────────────────────────────────────────────────────────────
  - 비동기 전용. 요약 호출은 네트워크 I/O이며 호출자가 순차적으로 await한다.
  - system_prompt를 messages와 분리 전달. 프로바이더가 내부에서 적절히 처리.
    · OpenAI: messages 앞에 system 메시지로 prepend
    · Anthropic: system 파라미터로 전달 (messages에는 user/assistant만)
  - SDK 예외는 프로바이더 구현 안에서 TransportError로 변환한다.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class LLMResponse:
    """프로바이더 독립적 LLM 응답."""
    content: str | None = None
    output_tokens: int = 0   # 프로바이더가 usage를 주지 않으면 0
    _raw: Any = None


class BaseLLMClient(ABC):
    """LLM 프로바이더 인터페이스. OpenAI/Anthropic 구현."""

    provider: str = ""

    @abstractmethod
    async def chat(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        messages: list,
        max_tokens: int,
        timeout: float | None = None,
    ) -> LLMResponse:
        """
        비동기 LLM 호출.

        Args:
            model:         모델명 (예: "gpt-4o-mini", "claude-3-5-haiku-latest")
            temperature:   0=결정론적
            system_prompt: 시스템 프롬프트 (messages와 별도)
            messages:      [{"role": "user"|"assistant", "content": "..."}]
            max_tokens:    응답 토큰 상한
            timeout:       초 단위 타임아웃

        Raises:
            TransportError: SDK 호출 실패 또는 타임아웃
        """
        ...
