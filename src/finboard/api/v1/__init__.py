"""API version 1 routes."""

from fastapi import APIRouter

from finboard.api.v1 import data, summary, uploads

router = APIRouter(prefix="/api/v1")

router.include_router(data.router)
router.include_router(uploads.router)
router.include_router(summary.router)
