from fastapi import APIRouter
from app.api.v1.endpoints import admin, contractors, feedback, leads

api_router = APIRouter()
api_router.include_router(leads.router, prefix="/leads", tags=["leads"])
api_router.include_router(contractors.router, prefix="/contractors", tags=["contractors"])
api_router.include_router(feedback.router, prefix="/feedback", tags=["feedback"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
