"""
TokenCounter 협력자: 임의 텍스트의 토큰 비용을 추정한다.

토크나이저를 쓸 수 없으면 호출자를 실패시키지 않고 경고 로그 후 0을 반환한다.
"""

from typing import Optional, Protocol

import tiktoken

from hbs.core.config import settings
from hbs.core.logging import setup_logger


class TokenCounter(Protocol):
    def count_tokens(self, text: str) -> int:
        ...


class TiktokenCounter:
    """tiktoken 인코딩 기반 카운터. 인코딩은 첫 호출 시 한 번만 로드한다."""

    def __init__(self, encoding_name: Optional[str] = None):
        self.encoding_name = encoding_name or settings.HBS_TOKENIZER_ENCODING
        self.logger = setup_logger("TokenCounter")
        self._encoder = None
        self._unavailable = False

    def _load(self):
        if self._encoder is None and not self._unavailable:
            try:
                self._encoder = tiktoken.get_encoding(self.encoding_name)
            except Exception as e:
                self._unavailable = True
                self.logger.warning(
                    f"[TokenCounter] encoding {self.encoding_name!r} unavailable, counting as 0: {e}"
                )
        return self._encoder

    def count_tokens(self, text: str) -> int:
        encoder = self._load()
        if encoder is None or not text:
            return 0
        return len(encoder.encode(text))

