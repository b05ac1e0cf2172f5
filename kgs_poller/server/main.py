"""
MODULE OVERVIEW:
The FastAPI application factory for the access API emulator.

WHAT IS HAPPENING HERE:
`create_app()` builds a fresh app with its own mailbox registry, so tests can
run isolated instances in-process through `httpx.ASGITransport`. The module-level
`app` is what `kgs-poller server` hands to Uvicorn.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from loguru import logger

from kgs_poller.server.mailbox import MailboxRegistry
from kgs_poller.server.routes import access
from kgs_poller.shared.config import settings

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Access API emulator starting up...")
    yield
    logger.info(f"Shutdown complete. {len(app.state.registry.mailboxes)} sessions were still open.")

def create_app(poll_timeout_s: float | None = None) -> FastAPI:
    app = FastAPI(
        title="KGS access API emulator",
        description="A local stand-in for the long-polling game server access API",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.registry = MailboxRegistry()
    app.state.poll_timeout_s = poll_timeout_s if poll_timeout_s is not None else settings.LONG_POLL_TIMEOUT_S

    app.include_router(access.router, tags=["Access"])

    @app.get("/healthz", tags=["Ops"])
    async def health_check():
        return {"status": "ok", "open_sessions": len(app.state.registry.mailboxes)}

    return app

app = create_app()
