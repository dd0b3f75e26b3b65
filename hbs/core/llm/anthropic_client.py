"""
Anthropic API 클라이언트: BaseLLMClient 구현.

system_prompt를 Anthropic의 system 파라미터로 전달하고,
messages에는 user/assistant만 포함한다.
"""

from hbs.core.config import settings
from hbs.core.errors import TransportError
from hbs.core.llm.base_client import BaseLLMClient, LLMResponse


class AnthropicClient(BaseLLMClient):
    """AsyncAnthropic 래퍼. BaseLLMClient 인터페이스 구현."""

    provider = "anthropic"

    def __init__(self, api_key: str | None = None):
        from anthropic import AsyncAnthropic
        self.client = AsyncAnthropic(api_key=api_key or settings.HBS_SUMM_API_KEY)

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
        from anthropic import AnthropicError, APITimeoutError

        kwargs = dict(
            model=model,
            system=system_prompt,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if timeout:
            kwargs["timeout"] = timeout

        try:
            resp = await self.client.messages.create(**kwargs)
        except APITimeoutError as e:
            raise TransportError(f"Anthropic request timed out after {timeout}s") from e
        except AnthropicError as e:
            raise TransportError(f"Anthropic request failed: {e}") from e

        content_text = "".join(
            block.text for block in resp.content if block.type == "text"
        )
        usage = getattr(resp, "usage", None)
        return LLMResponse(
            content=content_text.strip() or None,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
            _raw=resp,
        )
