from fastapi import APIRouter

from interview_studio.api.routes import generation, health, interview

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(interview.router, prefix="/interview", tags=["interview"])
api_router.include_router(generation.router, prefix="/interview", tags=["generation"])
