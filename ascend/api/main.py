"""
ascend.api.main — FastAPI application entry point
==================================================

Read-only view of the persisted progress snapshot, for dashboards and
status pages.  It never writes; the bot process owns the data.

Run with::

    uvicorn ascend.api.main:app --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

load_dotenv()

from ascend.api.deps import get_backend  # noqa: E402
from ascend.api.routes.public import router as public_router  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — resolve the storage backend once."""
    logger.info("Ascend API started — reading from %r", get_backend())
    yield
    logger.info("Ascend API shutting down")


app = FastAPI(
    title="Ascend API",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(public_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}


def run() -> None:
    """Console-script entry point: serve on the configured port."""
    import uvicorn

    from ascend.api.deps import get_config

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )
    uvicorn.run(app, host="0.0.0.0", port=get_config().api_port)
