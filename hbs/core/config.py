import os
from pathlib import Path
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parents[2] / ".env")


class Settings(BaseModel):
    APP_NAME: str = os.getenv("APP_NAME", "hbs-summarizer")

    # 서버
    BACKEND_HOST: str = os.getenv("BACKEND_HOST", "0.0.0.0")
    BACKEND_PORT: int = int(os.getenv("BACKEND_PORT", "8010"))
    DEV_MODE: bool = os.getenv("DEV_MODE", "true").lower() == "true"

    LOG_DIR: str = os.getenv("LOG_DIR", "logs")
    LOG_FILE_NAME: str = os.getenv("LOG_FILE_NAME", "hbs.log")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_TO_FILE: bool = os.getenv("LOG_TO_FILE", "true").lower() == "true"
    LOG_PROPAGATE: bool = os.getenv("LOG_PROPAGATE", "false").lower() == "true"

    # 버킷 엔진 기본값: 대화별 state 생성 시 한 번만 적용된다
    HBS_ENABLED_GLOBALLY: bool = os.getenv("HBS_ENABLED_GLOBALLY", "true").lower() == "true"
    HBS_DEFAULT_CHUNK_SIZE: int = int(os.getenv("HBS_DEFAULT_CHUNK_SIZE", "8"))
    HBS_DEFAULT_LIVE_WINDOW: int = int(os.getenv("HBS_DEFAULT_LIVE_WINDOW", "12"))
    HBS_DEFAULT_MAX_SUMMARY_WORDS: int = int(os.getenv("HBS_DEFAULT_MAX_SUMMARY_WORDS", "120"))

    # 요약 블록 주입 방식
    HBS_INJECTION_TEMPLATE: str = os.getenv(
        "HBS_INJECTION_TEMPLATE", "[Summary of earlier conversation:]\n{{summary}}"
    )
    HBS_INJECTION_ROLE: str = os.getenv("HBS_INJECTION_ROLE", "system")

    HBS_TOKENIZER_ENCODING: str = os.getenv("HBS_TOKENIZER_ENCODING", "cl100k_base")

    # 요약 백엔드. PROVIDER가 비어 있으면 미설정 상태로 간주한다
    HBS_SUMM_PROVIDER: str = os.getenv("HBS_SUMM_PROVIDER", "")
    HBS_SUMM_BASE_URL: str = os.getenv("HBS_SUMM_BASE_URL", "")
    HBS_SUMM_API_KEY: str = os.getenv("HBS_SUMM_API_KEY", "")
    HBS_SUMM_MODEL: str = os.getenv("HBS_SUMM_MODEL", "gpt-4o-mini")
    HBS_SUMM_TEMPERATURE: float = float(os.getenv("HBS_SUMM_TEMPERATURE", "0.3"))
    HBS_SUMM_MAX_TOKENS: int = int(os.getenv("HBS_SUMM_MAX_TOKENS", "256"))
    HBS_SUMM_TIMEOUT_SEC: float = float(os.getenv("HBS_SUMM_TIMEOUT_SEC", "30"))


settings = Settings()
