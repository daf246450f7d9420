from fastapi import APIRouter

from diff_digest.api.v1.diffs import router as diffs_router
from diff_digest.api.v1.notes import router as notes_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(notes_router)
api_router.include_router(diffs_router)
