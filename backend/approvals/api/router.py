from fastapi import APIRouter

from approvals.api.incoming import incoming_router

api_router = APIRouter()
api_router.include_router(incoming_router)
