from carddex.api.catalog import router as catalog_router
from carddex.api.health import router as health_router
from carddex.api.population import router as population_router

__all__ = [
    "catalog_router",
    "health_router",
    "population_router",
]
