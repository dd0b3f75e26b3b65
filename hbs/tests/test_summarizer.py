"""LLMSummarizer / TiktokenCounter 테스트. 실제 API 호출 없음 (FakeLLMClient)."""

import pytest

from hbs.core.errors import ConfigurationError, EmptyResultError, InvalidArgumentError, TransportError
from hbs.core.llm import create_llm_client
from hbs.core.summarizer import (
    LEAF_SYSTEM_PROMPT,
    MERGE_SYSTEM_PROMPT,
    LLMSummarizer,
)
from hbs.core.token_counter import TiktokenCounter
from hbs.tests.mock_llm import FakeLLMClient


@pytest.mark.asyncio
async def test_leaf_request_shape():
    client = FakeLLMClient(content="  short summary  ", output_tokens=4)
    summarizer = LLMSummarizer(client=client, model="m", temperature=0.3, max_tokens=256, timeout_sec=5)

    result = await summarizer.summarize("leaf", "U: hi\n\nA: hello", 50)

    assert result.text == "short summary"
    assert result.token_count == 4
    req = client.requests[0]
    assert req["model"] == "m"
    assert req["system_prompt"] == LEAF_SYSTEM_PROMPT
    assert req["max_tokens"] == 256
    assert req["timeout"] == 5
    assert req["messages"] == [{
        "role": "user",
        "content": "Summarize the following conversation in under 50 words:\n\nU: hi\n\nA: hello",
    }]


@pytest.mark.asyncio
async def test_merge_uses_merge_prompt():
    client = FakeLLMClient()
    summarizer = LLMSummarizer(client=client, model="m")

    await summarizer.summarize("merge", "S1: a\n\nS2: b", 30)

    assert client.requests[0]["system_prompt"] == MERGE_SYSTEM_PROMPT
    assert client.requests[0]["messages"][0]["content"].startswith(
        "Merge these summaries into one summary under 30 words:"
    )


@pytest.mark.asyncio
async def test_system_prompt_override():
    client = FakeLLMClient()
    summarizer = LLMSummarizer(client=client, model="m", leaf_system_prompt="custom")

    await summarizer.summarize("leaf", "x", 10)

    assert client.requests[0]["system_prompt"] == "custom"


@pytest.mark.asyncio
async def test_invalid_mode_is_rejected_before_calling_backend():
    client = FakeLLMClient()
    summarizer = LLMSummarizer(client=client, model="m")

    with pytest.raises(InvalidArgumentError, match="Invalid mode"):
        await summarizer.summarize("digest", "x", 10)
    assert client.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   \n", None])
async def test_empty_response_raises(content):
    summarizer = LLMSummarizer(client=FakeLLMClient(content=content), model="m")

    with pytest.raises(EmptyResultError):
        await summarizer.summarize("leaf", "x", 10)


@pytest.mark.asyncio
async def test_timeout_becomes_transport_error():
    summarizer = LLMSummarizer(client=FakeLLMClient(delay=1.0), model="m", timeout_sec=0.05)

    with pytest.raises(TransportError, match="timed out after 0.05 seconds"):
        await summarizer.summarize("leaf", "x", 10)


@pytest.mark.asyncio
async def test_transport_errors_propagate():
    summarizer = LLMSummarizer(client=FakeLLMClient(error=TransportError("502 from backend")), model="m")

    with pytest.raises(TransportError, match="502"):
        await summarizer.summarize("leaf", "x", 10)


@pytest.mark.asyncio
async def test_unconfigured_backend_fails_before_network():
    summarizer = LLMSummarizer(provider="", api_key="", model="m")

    assert summarizer.configured is False
    with pytest.raises(ConfigurationError, match="HBS_SUMM_PROVIDER"):
        await summarizer.summarize("leaf", "x", 10)


def test_configured_with_injected_client():
    assert LLMSummarizer(client=FakeLLMClient(), model="m").configured is True
    assert LLMSummarizer(provider="openai", api_key="k", model="m").configured is True


def test_unknown_provider():
    with pytest.raises(ConfigurationError, match="Unknown summarization provider"):
        create_llm_client("mystery", api_key="k")


def test_token_counter_with_unknown_encoding_returns_zero():
    counter = TiktokenCounter(encoding_name="no-such-encoding")

    assert counter.count_tokens("hello world") == 0
    assert counter.count_tokens("again") == 0
    assert counter._unavailable is True


def test_token_counter_empty_text():
    assert TiktokenCounter(encoding_name="no-such-encoding").count_tokens("") == 0


@pytest.mark.asyncio
async def test_injected_client_without_model_is_not_called():
    client = FakeLLMClient()
    summarizer = LLMSummarizer(client=client, model="m")
    summarizer.model = ""

    assert summarizer.configured is False
    with pytest.raises(ConfigurationError):
        await summarizer.summarize("leaf", "x", 10)
    assert client.requests == []
