from fastapi import APIRouter

from seccheck.api.v1.endpoints import admin, health, leads, results, scoring, submissions

router = APIRouter(prefix="/api/v1")

router.include_router(submissions.router)
router.include_router(leads.router)
router.include_router(results.router)
router.include_router(scoring.router)
router.include_router(admin.router)
router.include_router(health.router)
