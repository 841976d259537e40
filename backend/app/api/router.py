"""API router that aggregates all routes."""

from fastapi import APIRouter, Depends

from app.api.feature_gate import ensure_service_available
from app.api.routes import auth, health, products, profiles, reports, wishlist
from app.api.routes.admin import admins as admin_admins
from app.api.routes.admin import auth as admin_auth
from app.api.routes.admin import dashboard as admin_dashboard
from app.api.routes.admin import database as admin_database
from app.api.routes.admin import products as admin_products
from app.api.routes.admin import reports as admin_reports
from app.api.routes.admin import sellers as admin_sellers
from app.api.routes.admin import settings as admin_settings
from app.api.routes.admin import users as admin_users

api_router = APIRouter(prefix="/api")

# Stays reachable during maintenance and emergency shutdown
api_router.include_router(health.router)

# Public marketplace routes, closed while the API is off or in maintenance
public_router = APIRouter(dependencies=[Depends(ensure_service_available)])
public_router.include_router(auth.router)
public_router.include_router(products.router)
public_router.include_router(wishlist.router)
public_router.include_router(reports.router)
public_router.include_router(profiles.router)

# Admin console routes
admin_router = APIRouter(prefix="/admin")
admin_router.include_router(health.router)
admin_router.include_router(admin_auth.router)
admin_router.include_router(admin_settings.router)
admin_router.include_router(admin_dashboard.router)
admin_router.include_router(admin_users.router)
admin_router.include_router(admin_products.router)
admin_router.include_router(admin_sellers.router)
admin_router.include_router(admin_reports.router)
admin_router.include_router(admin_admins.router)
admin_router.include_router(admin_database.router)

api_router.include_router(public_router)
api_router.include_router(admin_router)
