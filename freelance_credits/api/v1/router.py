from fastapi import APIRouter

from freelance_credits.api.v1.endpoints import admin_credits, credits

api_v1_router = APIRouter()

api_v1_router.include_router(credits.router, prefix="/credits", tags=["credits"])
api_v1_router.include_router(admin_credits.router, prefix="/admin/credits", tags=["admin"])
