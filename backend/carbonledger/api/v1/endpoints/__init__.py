from fastapi import APIRouter
from carbonledger.api.v1.endpoints import (
    auth, emissions, suppliers, reports, dashboard
)

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Auth"])
router.include_router(emissions.router, prefix="/emissions", tags=["Emissions"])
router.include_router(suppliers.router, prefix="/suppliers", tags=["Suppliers"])
router.include_router(reports.router, prefix="/reports", tags=["Reports"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
