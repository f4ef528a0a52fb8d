import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator

from fastapi import FastAPI

from wanderai.api.bundle import WanderBundle
from wanderai.core.config import ApiSettings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_bundle() -> WanderBundle:
    settings = ApiSettings.from_env()
    logger.info(f"Environment check: {settings.describe()}")
    return WanderBundle(settings)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    try:
        yield
    finally:
        if get_bundle.cache_info().currsize:
            await get_bundle().close()
