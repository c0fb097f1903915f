from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from ...errors import FetchError
from ...services import Services
from ..deps import get_services

router = APIRouter()


@router.get("/{blob_id:path}")
async def get_blob(blob_id: str, services: Services = Depends(get_services)):
    """Public cover images."""
    try:
        path = services.catalog.blobs.local_path(blob_id)
    except FetchError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return FileResponse(path)
