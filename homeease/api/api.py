from fastapi import APIRouter
from homeease.api.endpoints import auth, customer, provider, admin, cities

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(customer.router, prefix="/customer", tags=["customer"])
api_router.include_router(provider.router, prefix="/provider", tags=["provider"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(cities.router, prefix="/cities", tags=["cities"])
