from fastapi import APIRouter

from app.api.v1 import auth, components, import_routes, locations, suppliers

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(suppliers.router, prefix="/inventory/suppliers", tags=["suppliers"])
api_router.include_router(locations.router, prefix="/inventory/locations", tags=["storage-locations"])
api_router.include_router(components.router, prefix="/inventory/components", tags=["components"])
api_router.include_router(import_routes.router, prefix="/inventory/import", tags=["import"])
