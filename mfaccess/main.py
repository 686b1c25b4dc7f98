"""
mfaccess — MIFARE Classic access condition service.

FastAPI app exposing the access condition core to editors and UI layers:
- Decoding/encoding the 3 access condition bytes of a sector trailer
- Resolving which key (A, B, either, or none) allows an operation
- Checking and building value blocks
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from mfaccess.config import LOG_LEVEL, LOG_FORMAT
from mfaccess.api import access

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting mfaccess...")
    yield
    logger.info("Shutting down mfaccess")


app = FastAPI(
    title="mfaccess",
    description="MIFARE Classic access conditions and value blocks",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(access.router)


@app.get("/api/health")
async def health():
    """Liveness check."""
    return {"status": "ok"}
