from fastapi import APIRouter

from donation_api.api.routers import diagnostics as diagnostics_router
from donation_api.api.routers import donations as donations_router

router = APIRouter()

# operational probes
router.include_router(diagnostics_router.router)

# donation flow
router.include_router(donations_router.router)
