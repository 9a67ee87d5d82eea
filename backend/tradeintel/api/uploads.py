"""
Spreadsheet upload API endpoint.
"""
from fastapi import APIRouter, Depends, File as FastAPIFile, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional
import logging
import time
from tradeintel.db.database import get_db
from tradeintel.schemas.import_summary import ImportSummaryResponse
from tradeintel.services.importer import ImportValidationError, import_file

router = APIRouter()
logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 50 * 1024 * 1024


@router.post("", response_model=ImportSummaryResponse)
def upload_exports(
    file: Optional[UploadFile] = FastAPIFile(None),
    data_type: Optional[str] = Form(None, alias="dataType"),
    db: Session = Depends(get_db)
):
    """Import a customs export spreadsheet filed under a category."""
    if file is None or not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded"
        )

    content = file.file.read()
    logger.info("File received: %s, size: %d bytes", file.filename, len(content))
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {MAX_UPLOAD_BYTES // (1024 * 1024)}MB limit"
        )

    start = time.perf_counter()
    try:
        summary = import_file(db, content, file.filename, data_type)
    except ImportValidationError as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except ValueError as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Error reading file: {str(e)}"
        )
    except Exception as e:
        db.rollback()
        logger.exception("Upload of %s failed", file.filename)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error importing file: {str(e)}"
        )

    logger.info(
        "Imported %s in %.2fs: %d inserted, %d skipped",
        file.filename,
        time.perf_counter() - start,
        summary.inserted,
        summary.skipped,
    )
    return ImportSummaryResponse(
        message=f"Processed {summary.processed} of {summary.total_rows} rows",
        **summary.as_dict(),
    )
