from hbs.core.errors import ConfigurationError
from hbs.core.llm.base_client import BaseLLMClient, LLMResponse

SUPPORTED_PROVIDERS = ("openai", "anthropic")


def create_llm_client(provider: str, api_key: str | None = None) -> BaseLLMClient:
    """프로바이더 이름으로 LLM 클라이언트 인스턴스를 생성한다."""
    if provider == "openai":
        from hbs.core.llm.openai_client import OpenAIClient
        return OpenAIClient(api_key=api_key)
    if provider == "anthropic":
        from hbs.core.llm.anthropic_client import AnthropicClient
        return AnthropicClient(api_key=api_key)
    raise ConfigurationError(
        f"Unknown summarization provider: {provider!r} "
        f"(expected one of {', '.join(SUPPORTED_PROVIDERS)})"
    )


__all__ = ["BaseLLMClient", "LLMResponse", "SUPPORTED_PROVIDERS", "create_llm_client"]
