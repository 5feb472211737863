from fastapi import APIRouter

from homematch_api.routers.v1 import (
    couples,
    households,
    interactions,
    maps,
    neighborhoods,
    properties,
    saved_searches,
    users,
)

v1_router = APIRouter(prefix="/v1")

v1_router.include_router(couples.router)
v1_router.include_router(households.router)
v1_router.include_router(interactions.router)
v1_router.include_router(properties.router)
v1_router.include_router(saved_searches.router)
v1_router.include_router(neighborhoods.router)
v1_router.include_router(users.router)
v1_router.include_router(maps.router)
