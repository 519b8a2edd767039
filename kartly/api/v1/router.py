from fastapi import APIRouter
from kartly.api.v1 import auth, public, vendor, admin

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(public.router, prefix="/public", tags=["public"])
api_router.include_router(vendor.router, prefix="/vendor", tags=["vendor"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
