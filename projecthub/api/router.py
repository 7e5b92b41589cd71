from fastapi import APIRouter

from projecthub.api.endpoints import auth, projects, events, health

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(projects.router)
api_router.include_router(events.router)
