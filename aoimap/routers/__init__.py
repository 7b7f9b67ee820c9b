"""API routers."""

from aoimap.routers.drafts import router as drafts_router
from aoimap.routers.features import router as features_router
from aoimap.routers.geo import router as geo_router
from aoimap.routers.map import router as map_router

__all__ = ["drafts_router", "features_router", "geo_router", "map_router"]
