"""
API routes for the deal model.
"""

from fastapi import APIRouter

from dealmodel.api import calculations, underwriting

router = APIRouter()

# Include sub-routers
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
router.include_router(underwriting.router, prefix="/underwriting", tags=["underwriting"])
