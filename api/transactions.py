"""API routes for transaction operations."""

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from api.dependencies import get_db_session, raise_for_result
from api.models import (
    BulkCategoryUpdate,
    BulkDeleteRequest,
    BulkDescriptionUpdate,
    BulkPayeeUpdate,
    TransactionCreate,
    TransactionPage,
    TransactionResponse,
    TransactionSummaryResponse,
    TransactionUpdate,
)
from api.services import TransactionService
from src.famfin.core.models import TransactionType

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("/", response_model=TransactionPage)
async def get_transactions(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=1000),
    sort_by: str = Query("date", pattern="^(date|amount|description|payee)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    account_id: int | None = Query(None),
    category_id: str | None = Query(None, pattern=r"^(\d+|uncategorised)$"),
    transaction_type: TransactionType | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    search: str | None = Query(None),
    min_amount: float | None = Query(None, ge=0),
    max_amount: float | None = Query(None, ge=0),
    db: Session = Depends(get_db_session),
) -> TransactionPage:
    """Get transactions with filtering, sorting and pagination."""
    try:
        return TransactionService.get_transactions(
            session=db,
            page=page,
            page_size=page_size,
            sort_by=sort_by,
            sort_order=sort_order,
            account_id=account_id,
            category_id=category_id,
            transaction_type=transaction_type,
            date_from=date_from,
            date_to=date_to,
            search=search,
            min_amount=min_amount,
            max_amount=max_amount,
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/summary", response_model=TransactionSummaryResponse)
async def get_transactions_summary(
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    db: Session = Depends(get_db_session),
) -> TransactionSummaryResponse:
    """Income, expenses and net cash flow for a date range."""
    try:
        return TransactionService.get_summary(db, date_from=date_from, date_to=date_to)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.post("/bulk-delete")
async def delete_transactions(request: BulkDeleteRequest, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    """Delete several transactions at once."""
    result = raise_for_result(TransactionService.delete_transactions(db, request.transaction_ids))
    return {"success": True, "deleted": result.count}


@router.put("/bulk/category")
async def update_transactions_category(
    request: BulkCategoryUpdate, db: Session = Depends(get_db_session)
) -> dict[str, Any]:
    """Set (or clear) the category of several transactions."""
    result = raise_for_result(
        TransactionService.update_transactions_category(db, request.transaction_ids, request.category_id)
    )
    return {"success": True, "updated": result.count}


@router.put("/bulk/payee")
async def update_transactions_payee(request: BulkPayeeUpdate, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    result = raise_for_result(TransactionService.update_transactions_payee(db, request.transaction_ids, request.payee))
    return {"success": True, "updated": result.count}


@router.put("/bulk/description")
async def update_transactions_description(
    request: BulkDescriptionUpdate, db: Session = Depends(get_db_session)
) -> dict[str, Any]:
    result = raise_for_result(
        TransactionService.update_transactions_description(db, request.transaction_ids, request.description)
    )
    return {"success": True, "updated": result.count}


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(transaction_id: int, db: Session = Depends(get_db_session)) -> TransactionResponse:
    transaction = TransactionService.get_transaction(db, transaction_id)
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return transaction


@router.post("/", response_model=TransactionResponse, status_code=201)
async def create_transaction(data: TransactionCreate, db: Session = Depends(get_db_session)) -> TransactionResponse:
    """Create a transaction manually."""
    result = raise_for_result(TransactionService.create_transaction(db, data))
    return TransactionService.get_transaction(db, result.id)


@router.put("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: int, update: TransactionUpdate, db: Session = Depends(get_db_session)
) -> TransactionResponse:
    raise_for_result(TransactionService.update_transaction(db, transaction_id, update), "Transaction not found")
    return TransactionService.get_transaction(db, transaction_id)


@router.delete("/{transaction_id}")
async def delete_transaction(transaction_id: int, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    raise_for_result(TransactionService.delete_transaction(db, transaction_id), "Transaction not found")
    return {"success": True, "deleted": 1}
