"""
HBS 로거 팩토리.

모든 컴포넌트 로거는 "hbs." 네임스페이스 아래에 생성된다.
호스트 애플리케이션이 logging.getLogger("hbs")로 레벨/핸들러를 한 번에 제어할 수 있다.

  LOG_TO_FILE=false  → 파일 핸들러 생략 (라이브러리로 임베드할 때, 테스트 환경)
  LOG_PROPAGATE=true → 루트 로거로 전파 (pytest caplog 등에서 레코드 수집)
"""

import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler

from hbs.core.config import settings

_NAMESPACE = "hbs"
_LOGGERS: dict[str, logging.Logger] = {}


def setup_logger(name: str) -> logging.Logger:
    if name in _LOGGERS:
        return _LOGGERS[name]

    logger = logging.getLogger(f"{_NAMESPACE}.{name}")
    logger.setLevel(settings.LOG_LEVEL)

    formatter = logging.Formatter("[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s")

    # 중복 핸들러 방지
    if not logger.handlers:
        sh = logging.StreamHandler(sys.stdout)
        sh.setFormatter(formatter)
        logger.addHandler(sh)

        if settings.LOG_TO_FILE:
            os.makedirs(settings.LOG_DIR, exist_ok=True)
            fh = TimedRotatingFileHandler(
                os.path.join(settings.LOG_DIR, settings.LOG_FILE_NAME),
                when="midnight",
                backupCount=14,
                encoding="utf-8",
            )
            fh.setFormatter(formatter)
            logger.addHandler(fh)

    logger.propagate = settings.LOG_PROPAGATE
    _LOGGERS[name] = logger
    return logger
