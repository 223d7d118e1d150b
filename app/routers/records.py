import logging

from fastapi import APIRouter, HTTPException

from app.models.schemas import CascadeDeleteResponse
from app.services.database_service import delete_harvest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/records", tags=["records"])


@router.delete("/harvests/{harvest_id}", response_model=CascadeDeleteResponse)
async def remove_harvest(harvest_id: str):
    """Delete a harvest and the collector payment logs recorded against it."""
    try:
        deleted_counts = await delete_harvest(harvest_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error deleting harvest {harvest_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to delete harvest: {str(e)}")

    if not deleted_counts["harvests"]:
        raise HTTPException(status_code=404, detail="Harvest not found")

    return CascadeDeleteResponse(message="Harvest deleted", deleted_counts=deleted_counts)
