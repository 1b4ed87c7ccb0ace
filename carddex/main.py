from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from carddex.api import catalog_router, health_router, population_router
from carddex.config import settings
from carddex.db.database import init_db


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Create the cache tables on startup."""
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("carddex"),
    lifespan=lifespan,
)

app.include_router(catalog_router)
app.include_router(health_router)
app.include_router(population_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["*"],
)
