"""
Irene — Main API Router

Aggregates all sub-routers under a single prefix so that ``irene.main``
can mount the entire API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from irene.api import compatibility, personality

router = APIRouter()

router.include_router(compatibility.router, prefix="/compatibility", tags=["Compatibility"])
router.include_router(personality.router, prefix="/personality", tags=["Personality"])
