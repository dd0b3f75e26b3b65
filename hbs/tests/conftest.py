import os

# 테스트 중에는 logs/ 파일을 만들지 않고 caplog로 레코드를 수집한다
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_PROPAGATE", "true")
os.environ.setdefault("DEV_MODE", "true")

import pytest

from hbs.core.buckets.bucket_manager import BucketManager
from hbs.core.buckets.models import EngineState
from hbs.tests.mock_llm import ConstantTokenCounter, ScriptedSummarizer


@pytest.fixture
def summarizer():
    return ScriptedSummarizer()


@pytest.fixture
def counter():
    return ConstantTokenCounter()


@pytest.fixture
def manager(summarizer, counter):
    return BucketManager(summarizer=summarizer, token_counter=counter)


@pytest.fixture
def make_state():
    def _make(chunk_size=2, live_window_size=1, max_summary_words=20, **kw):
        return EngineState(
            chunk_size=chunk_size,
            live_window_size=live_window_size,
            max_summary_words=max_summary_words,
            **kw,
        )
    return _make
