from fastapi import APIRouter

from app.api.v1.endpoints import admin_licences, auth, boletos, dashboard, licences, transporters, vehicles

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(transporters.router, prefix="/transporters", tags=["transporters"])
api_router.include_router(vehicles.router, prefix="/vehicles", tags=["vehicles"])
api_router.include_router(licences.router, prefix="/licences", tags=["licences"])
api_router.include_router(admin_licences.router, prefix="/admin/licences", tags=["admin"])
api_router.include_router(boletos.router, prefix="/boletos", tags=["boletos"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
