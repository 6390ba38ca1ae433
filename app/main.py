"""Main FastAPI application."""
from fastapi import FastAPI
from contextlib import asynccontextmanager

from app.core.logging import setup_logging
from app.db.database import init_db
from app.api import health, calling_agent, calls, scripts
from app.api.webhooks import voice


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    await init_db()
    yield


app = FastAPI(
    title="AI Calling Agent",
    description="Outbound AI voice calls with multi-provider reply generation",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(voice.router, prefix="/api/calling-agent", tags=["webhooks"])
app.include_router(calling_agent.router, prefix="/api/calling-agent", tags=["calling-agent"])
app.include_router(scripts.router, prefix="/api/calling-agent", tags=["scripts"])
app.include_router(calls.router, tags=["calls"])


@app.get("/")
async def root():
    """Service information."""
    return {
        "message": "AI Calling Agent API",
        "version": "0.1.0",
    }


if __name__ == "__main__":
    import uvicorn

    from app.core.config import settings

    uvicorn.run("app.main:app", host=settings.host, port=settings.port)
