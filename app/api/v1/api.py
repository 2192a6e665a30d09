from fastapi import APIRouter

from app.api.routes import orders, production_groups, production_summary

api_router = APIRouter()


api_router.include_router(production_summary.router)
api_router.include_router(production_groups.router)
api_router.include_router(orders.router)
