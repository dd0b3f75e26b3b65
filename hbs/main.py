from fastapi import FastAPI

from hbs.core.api import create_hbs_router
from hbs.core.buckets import BucketManager
from hbs.core.config import settings
from hbs.core.service import HBSService
from hbs.core.state import InMemoryStateStore
from hbs.core.summarizer import LLMSummarizer
from hbs.core.token_counter import TiktokenCounter

# ── 협력자 조립 ───────────────────────────────────────────────────────────────
# 요약 백엔드와 토크나이저는 첫 호출 시 초기화된다 (import 시 네트워크 접근 없음).
summarizer = LLMSummarizer()
token_counter = TiktokenCounter()

service = HBSService(
    manager=BucketManager(summarizer=summarizer, token_counter=token_counter),
    store=InMemoryStateStore(),
)

hbs_router = create_hbs_router(service, summarizer)

app = FastAPI(title=settings.APP_NAME)
app.include_router(hbs_router)


if __name__ == "__main__":
    # uvicorn hbs.main:app --reload 와 동일
    import uvicorn

    uvicorn.run(app, host=settings.BACKEND_HOST, port=settings.BACKEND_PORT)
