from fastapi import APIRouter

from src.api.v1.endpoints.applications import router as applications_router
from src.api.v1.endpoints.documents import router as documents_router
from src.api.v1.endpoints.visa_applications import router as visa_applications_router

router = APIRouter()


@router.get("/ping")
async def ping():
    return {"ping": "pong"}


router.include_router(applications_router)
router.include_router(visa_applications_router)
router.include_router(documents_router)
