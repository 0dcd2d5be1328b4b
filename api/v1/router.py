from __future__ import annotations

from fastapi import APIRouter

from api.v1.endpoints import admin as admin_endpoints
from api.v1.endpoints import auth as auth_endpoints
from api.v1.endpoints import me as me_endpoints
from api.v1.endpoints import public as public_endpoints


api_router = APIRouter()

api_router.include_router(auth_endpoints.router)
api_router.include_router(public_endpoints.router)
api_router.include_router(me_endpoints.router)
api_router.include_router(admin_endpoints.router)
