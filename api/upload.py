"""API routes for file upload operations."""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from api.dependencies import get_config, get_db_session
from api.models import UploadResponse
from api.services import AccountService, CategoryService
from src.famfin.core.config import AppConfig
from src.famfin.data.csv_processor import CSVProcessor, parse_csv

router = APIRouter(prefix="/upload", tags=["upload"])

logger = logging.getLogger(__name__)

NO_TRANSACTIONS_ERROR = "Could not parse any transactions from the file"


@router.post("/csv", response_model=UploadResponse)
async def upload_csv(
    file: UploadFile = File(...),
    account_id: int = Form(...),
    db: Session = Depends(get_db_session),
    config: AppConfig = Depends(get_config),
) -> UploadResponse:
    """Upload a bank CSV export and import its transactions into an account."""
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are allowed")

    if file.size and file.size > config.max_upload_bytes:
        raise HTTPException(status_code=400, detail="File too large (max 10MB)")

    if not AccountService.get_account(db, account_id):
        raise HTTPException(status_code=404, detail="Account not found")

    try:
        content = await file.read()
        text = content.decode("utf-8-sig", errors="replace")

        transactions = parse_csv(text)
        if not transactions:
            raise HTTPException(status_code=400, detail=NO_TRANSACTIONS_ERROR)

        processor = CSVProcessor(db, config)
        result = processor.import_transactions(account_id, transactions, CategoryService.get_category_map(db))

        return UploadResponse(
            import_id=result.import_id,
            filename=file.filename,
            rows_processed=len(transactions),
            transactions_imported=result.imported,
            duplicates_skipped=result.duplicates_skipped,
            transactions_categorised=result.categorised,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error("CSV upload failed for %s: %s", file.filename, e)
        raise HTTPException(status_code=500, detail=f"Upload processing failed: {str(e)}") from e
