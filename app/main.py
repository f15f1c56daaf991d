from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from app.core.config import settings
from app.core.logging import configure_logging
from app.api.dashboard import router as dashboard_router
from app.dependencies import get_monitoring

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    components = get_monitoring()
    if settings.dashboard_polling_enabled:
        components.poller.start()
    yield
    await components.poller.stop()
    await components.collector.shutdown()

app = FastAPI(
    title=settings.service_name,
    lifespan=lifespan
)

app.include_router(dashboard_router, prefix="/v1")

@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("app.main:app", host=settings.api_host, port=settings.api_port)
