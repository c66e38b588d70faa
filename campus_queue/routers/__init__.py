from fastapi import APIRouter

from . import auth, health, public, queues, realtime, staff


def get_api_router() -> APIRouter:
    router = APIRouter()
    router.include_router(health.router)
    router.include_router(auth.router)
    router.include_router(staff.router)
    router.include_router(public.router)
    router.include_router(queues.router)
    router.include_router(realtime.router)
    return router
