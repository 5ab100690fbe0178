from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.core.config import settings
from app.core.db import engine, transaction_manager
from app.core.schema import create_all
from app.utils.exception_handlers import register_exception_handlers
from app.utils.router_discovery import register_routers


@asynccontextmanager
async def app_lifespan(_: FastAPI) -> AsyncGenerator[None, FastAPI]:
    if settings.is_dev:
        # Production schemas are managed by alembic
        await create_all(engine)

    yield

    if transaction_manager.inflight:
        logger.info(f"Waiting for {transaction_manager.inflight} in-flight transactions")
    await transaction_manager.drain()
    await engine.dispose()


app = FastAPI(
    title="Titan Gacha API",
    lifespan=app_lifespan,
    description="Gacha draws, power inventory and arena ladder for the Titan RPG bot.",
    servers=[{"url": "http://localhost:3011", "description": "Local server"}],
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


register_routers(app)
register_exception_handlers(app)


@app.get("/")
async def healthz() -> str:
    return "OK"
