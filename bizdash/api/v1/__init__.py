"""V1 API router aggregation."""

from fastapi import APIRouter

from bizdash.api.v1.admin import router as admin_router
from bizdash.api.v1.assist import router as assist_router
from bizdash.api.v1.auth import router as auth_router
from bizdash.api.v1.categories import router as categories_router
from bizdash.api.v1.library import router as library_router
from bizdash.api.v1.organizations import router as organizations_router
from bizdash.api.v1.prompts import router as prompts_router
from bizdash.api.v1.resources import router as resources_router
from bizdash.api.v1.tasks import router as tasks_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(auth_router)
v1_router.include_router(organizations_router)
v1_router.include_router(tasks_router)
# Before resources: "/resources/{resource_id}" would capture "categories"
v1_router.include_router(categories_router)
v1_router.include_router(resources_router)
v1_router.include_router(library_router)
v1_router.include_router(prompts_router)
v1_router.include_router(assist_router)
v1_router.include_router(admin_router)
