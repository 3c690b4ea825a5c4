import logging

from fastapi import APIRouter, Depends, File, UploadFile

from eats.core.results import ErrorCode
from eats.routers.deps import get_uploads
from eats.schemas import UploadOutput
from eats.services.uploads import UploadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.post("", response_model=UploadOutput, summary="Upload an image")
async def upload_file(
    file: UploadFile = File(...),
    uploads: UploadService = Depends(get_uploads),
) -> UploadOutput:
    """Store a cover image or dish photo and return the URL it is served from."""
    content = await file.read()
    try:
        url = uploads.save(file.filename or "upload", content)
    except OSError as e:
        logger.error(f"Upload of {file.filename} failed: {e}")
        return UploadOutput(
            ok=False,
            error="Could not store file",
            error_code=ErrorCode.INFRASTRUCTURE_FAILURE,
        )
    return UploadOutput(ok=True, url=url)
