"""API v1 router aggregator."""

from fastapi import APIRouter

from contentops.api.v1.workflows.routes import router as workflows_router

api_router = APIRouter()

api_router.include_router(workflows_router, prefix="/workflows", tags=["Workflows"])
