import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from mastermind.api.routes import router
from mastermind.singleton import init_engine, shutdown_engine

# Local runs pick up a repo .env; real environment variables win.
load_dotenv(override=False)

# Configure logging
logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    init_engine()
    try:
        yield
    finally:
        await shutdown_engine()


app = FastAPI(title="mastermind", version="0.1.0", lifespan=lifespan)
app.include_router(router)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "mastermind", "version": "0.1.0"}
