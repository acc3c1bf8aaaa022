"""
Admin dashboard routes: statistics and the audit log.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List, Optional
import logging

from studio_site.dependencies import get_storage
from studio_site.schemas import AdminLogResponse, AdminStatsResponse
from studio_site.storage import DatabaseStorage
from studio_site.utils.session_auth import AdminIdentity, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats", response_model=AdminStatsResponse)
async def get_admin_stats(
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    """Counts of FAQs, galleries and reviews waiting for moderation."""
    try:
        return await storage.get_admin_stats()
    except Exception as e:
        logger.error(f"Error fetching admin stats: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore nel recupero delle statistiche"}
        )


@router.get("/logs", response_model=List[AdminLogResponse])
async def get_admin_logs(
    admin_id: Optional[int] = Query(default=None, alias="adminId"),
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    """Audit log, oldest first, optionally for a single admin."""
    try:
        logs = await storage.get_admin_logs(admin_id)
        return [AdminLogResponse.model_validate(entry) for entry in logs]
    except Exception as e:
        logger.error(f"Error fetching admin logs: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore nel recupero dei log amministrativi"}
        )
