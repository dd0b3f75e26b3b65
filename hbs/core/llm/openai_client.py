"""
OpenAI 호환 API 클라이언트: BaseLLMClient 구현.

HBS_SUMM_BASE_URL을 지정하면 OpenAI 호환 엔드포인트(OpenRouter, vLLM, 로컬 서버 등)로 보낸다.
"""

from openai import APITimeoutError, AsyncOpenAI, OpenAIError

from hbs.core.config import settings
from hbs.core.errors import TransportError
from hbs.core.llm.base_client import BaseLLMClient, LLMResponse


class OpenAIClient(BaseLLMClient):
    """AsyncOpenAI 래퍼. BaseLLMClient 인터페이스 구현."""

    provider = "openai"

    def __init__(self, api_key: str | None = None, base_url: str | None = None):
        self.client = AsyncOpenAI(
            api_key=api_key or settings.HBS_SUMM_API_KEY,
            base_url=base_url or settings.HBS_SUMM_BASE_URL or None,
        )

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
        msgs = [{"role": "system", "content": system_prompt}, *messages]
        try:
            resp = await self.client.chat.completions.create(
                model=model,
                messages=msgs,
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=timeout,
            )
        except APITimeoutError as e:
            raise TransportError(f"OpenAI request timed out after {timeout}s") from e
        except OpenAIError as e:
            raise TransportError(f"OpenAI request failed: {e}") from e

        if not resp.choices or resp.choices[0].message is None:
            raise TransportError("Invalid API response format")

        usage = getattr(resp, "usage", None)
        return LLMResponse(
            content=(resp.choices[0].message.content or "").strip() or None,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            _raw=resp,
        )
