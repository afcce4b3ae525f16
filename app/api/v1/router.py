from fastapi import APIRouter

from app.api.v1.auth import router as auth_router
from app.api.v1.data import router as data_router
from app.api.v1.files import router as files_router
from app.api.v1.folders import router as folders_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(data_router)
router.include_router(folders_router)
router.include_router(files_router)
