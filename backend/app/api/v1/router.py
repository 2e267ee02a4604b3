from fastapi import APIRouter

from backend.app.api.v1.endpoints.health import router as health_router
from backend.app.api.v1.endpoints.dashboard import router as dashboard_router
from backend.app.api.v1.endpoints.orders import router as orders_router
from backend.app.api.v1.endpoints.techniker import router as techniker_router
from backend.app.api.v1.endpoints.procurement import router as procurement_router
from backend.app.api.v1.endpoints.receiving import router as receiving_router
from backend.app.api.v1.endpoints.inventur import router as inventur_router
from backend.app.api.v1.endpoints.articles import router as articles_router
from backend.app.api.v1.endpoints.suppliers import router as suppliers_router
from backend.app.api.v1.endpoints.locations import router as locations_router
from backend.app.api.v1.endpoints.stock import router as stock_router
from backend.app.api.v1.endpoints.stock_movements import router as stock_movements_router
from backend.app.api.v1.endpoints.serial_numbers import router as serial_numbers_router
from backend.app.api.v1.endpoints.mobilfunk import router as mobilfunk_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(dashboard_router, tags=["dashboard"])
router.include_router(orders_router, tags=["orders"])
router.include_router(techniker_router, tags=["techniker"])
router.include_router(procurement_router, tags=["procurement"])
router.include_router(receiving_router, tags=["receiving"])
router.include_router(inventur_router, tags=["inventur"])
router.include_router(articles_router, tags=["articles"])
router.include_router(suppliers_router, tags=["suppliers"])
router.include_router(locations_router, tags=["locations"])
router.include_router(stock_router, tags=["stock"])
router.include_router(stock_movements_router, tags=["stock_movements"])
router.include_router(serial_numbers_router, tags=["serial_numbers"])
router.include_router(mobilfunk_router, tags=["mobilfunk"])
