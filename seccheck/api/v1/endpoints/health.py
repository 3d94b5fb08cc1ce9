import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from seccheck.api.deps import get_db, get_lead_repo
from seccheck.repositories.lead_repository import LeadRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health(
    db: AsyncSession = Depends(get_db),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> dict:
    """Liveness plus a database round-trip and the leads table shape."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Health check: database unreachable", exc_info=True)
        return {"status": "degraded", "database": "unreachable"}

    caps = await lead_repo.capabilities()
    return {
        "status": "ok",
        "database": "ok",
        "leads_table": caps.exists,
        "lead_columns": len(caps.columns),
    }
