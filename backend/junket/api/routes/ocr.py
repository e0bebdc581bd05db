"""
OCR routes for reading session slips.
"""
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from junket.core.config import settings
from junket.models.user import User
from junket.schemas.record import OCRExtractionResponse
from junket.services.ocr_service import OCRError, parse_session_image
from junket.api.dependencies import require_staff_or_admin

router = APIRouter(prefix="/ocr", tags=["ocr"])


@router.post("/parse", response_model=OCRExtractionResponse)
async def parse_session_slip(
    file: UploadFile = File(...),
    current_user: User = Depends(require_staff_or_admin)
):
    """Upload a slip photo and return the session figures found in it.

    Nothing is saved: staff review the result and submit a rolling record.
    """
    if file.content_type not in settings.ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Only JPEG and PNG are supported."
        )

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="File is too large"
        )

    try:
        extraction = await parse_session_image(content, file.filename or "upload")
    except OCRError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e)
        )

    return OCRExtractionResponse(
        engine=extraction.engine,
        confidence=extraction.confidence,
        text=extraction.text,
        fields=extraction.fields,
        rolling_amount=extraction.amount("rolling_amount"),
        win_loss=extraction.amount("win_loss"),
        buy_in_amount=extraction.amount("buy_in_amount"),
        buy_out_amount=extraction.amount("buy_out_amount")
    )
