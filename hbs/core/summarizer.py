"""
Summarizer 협력자: 원문 텍스트를 짧은 요약으로 바꾼다.

BucketManager는 Summarizer 프로토콜만 알고, 실제 LLM 호출 방식은 모른다.
호스트는 LLMSummarizer를 쓰거나 자체 구현(사내 게이트웨이 등)을 주입한다.

─── 오류 계약 ───────────────────────────────────────────────────────────────
  ConfigurationError   프로바이더/API 키/모델 미설정
  TransportError       SDK 호출 실패, 타임아웃
  EmptyResultError     빈 응답
  InvalidArgumentError mode가 "leaf" | "merge"가 아님
"""

import asyncio
from dataclasses import dataclass
from typing import Protocol

from hbs.core.config import settings
from hbs.core.errors import ConfigurationError, EmptyResultError, InvalidArgumentError, TransportError
from hbs.core.llm import BaseLLMClient, create_llm_client
from hbs.core.logging import setup_logger

LEAF = "leaf"
MERGE = "merge"
MODES = (LEAF, MERGE)

# ── 요약 LLM 프롬프트 ─────────────────────────────────────────────────────────
# LLMSummarizer(leaf_system_prompt=..., merge_system_prompt=...)로 서비스별 override 가능

LEAF_SYSTEM_PROMPT = (
    "You are a precise summarizer. Summarize the following conversation excerpt.\n"
    "Focus on: key facts, character actions, plot developments, emotional states.\n"
    "Output only the summary, no preamble or meta-commentary."
)

MERGE_SYSTEM_PROMPT = (
    "You are a precise summarizer. Merge these two consecutive summaries into one cohesive summary.\n"
    "Preserve chronological order and key information from both.\n"
    "Output only the merged summary, no preamble or meta-commentary."
)

LEAF_USER_TEMPLATE = "Summarize the following conversation in under {max_words} words:\n\n{text}"
MERGE_USER_TEMPLATE = "Merge these summaries into one summary under {max_words} words:\n\n{text}"


@dataclass
class SummaryResult:
    text: str
    token_count: int = 0   # 0이면 BucketManager가 TokenCounter로 다시 센다


class Summarizer(Protocol):
    async def summarize(self, mode: str, text: str, max_words: int) -> SummaryResult:
        ...


class LLMSummarizer:
    """
    BaseLLMClient 위의 Summarizer 구현.

    사용 예시:
        summarizer = LLMSummarizer()                        # settings(HBS_SUMM_*) 기반
        summarizer = LLMSummarizer(client=my_client,        # 테스트·커스텀 클라이언트
                                   model="gpt-4o-mini")
    """

    def __init__(
        self,
        client: BaseLLMClient | None = None,
        provider: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        timeout_sec: float | None = None,
        # 서비스별 override 포인트: None이면 모듈 상단 기본값 사용
        leaf_system_prompt: str | None = None,
        merge_system_prompt: str | None = None,
    ):
        self.provider = provider if provider is not None else settings.HBS_SUMM_PROVIDER
        self.api_key = api_key if api_key is not None else settings.HBS_SUMM_API_KEY
        self.model = model or settings.HBS_SUMM_MODEL
        self.temperature = temperature if temperature is not None else settings.HBS_SUMM_TEMPERATURE
        self.max_tokens = max_tokens or settings.HBS_SUMM_MAX_TOKENS
        self.timeout_sec = timeout_sec or settings.HBS_SUMM_TIMEOUT_SEC
        self.leaf_system_prompt = leaf_system_prompt or LEAF_SYSTEM_PROMPT
        self.merge_system_prompt = merge_system_prompt or MERGE_SYSTEM_PROMPT
        self.logger = setup_logger("Summarizer")
        self._client = client   # None이면 첫 호출 시 lazy init

    @property
    def configured(self) -> bool:
        if self._client is not None:
            return bool(self.model)
        return bool(self.provider and self.api_key and self.model)

    @property
    def client(self) -> BaseLLMClient:
        """LLM 클라이언트를 지연 초기화. 미설정이면 네트워크 호출 전에 실패한다."""
        if not self.configured:
            # 주입된 클라이언트가 있어도 모델이 비어 있으면 호출하지 않는다
            raise ConfigurationError(
                "Summarization backend not configured. "
                "Set environment variables: HBS_SUMM_PROVIDER, HBS_SUMM_API_KEY, HBS_SUMM_MODEL"
            )
        if self._client is None:
            self._client = create_llm_client(self.provider, api_key=self.api_key)
        return self._client

    async def summarize(self, mode: str, text: str, max_words: int) -> SummaryResult:
        if mode not in MODES:
            raise InvalidArgumentError(f'Invalid mode {mode!r}. Must be "leaf" or "merge"')

        client = self.client
        is_leaf = mode == LEAF
        system_prompt = self.leaf_system_prompt if is_leaf else self.merge_system_prompt
        template = LEAF_USER_TEMPLATE if is_leaf else MERGE_USER_TEMPLATE

        self.logger.info(
            f"[Summarizer] mode={mode}, provider={client.provider}, model={self.model}, "
            f"maxWords={max_words}, textLength={len(text)}"
        )

        try:
            resp = await asyncio.wait_for(
                client.chat(
                    model=self.model,
                    temperature=self.temperature,
                    system_prompt=system_prompt,
                    messages=[{"role": "user", "content": template.format(max_words=max_words, text=text)}],
                    max_tokens=self.max_tokens,
                    timeout=self.timeout_sec,
                ),
                timeout=self.timeout_sec,
            )
        except asyncio.TimeoutError as e:
            raise TransportError(f"Summarization request timed out after {self.timeout_sec:g} seconds") from e

        summary = (resp.content or "").strip()
        if not summary:
            raise EmptyResultError(f"Empty response from summarization backend (mode={mode})")

        return SummaryResult(text=summary, token_count=resp.output_tokens)
