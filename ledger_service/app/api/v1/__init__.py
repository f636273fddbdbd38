from fastapi import APIRouter

from .admin import router as admin_router
from .credits import router as credits_router

api_router = APIRouter()
# prefix 는 각 router 파일 내부에서 정의되어 있음 (/credits, /admin)
api_router.include_router(credits_router)
api_router.include_router(admin_router)
