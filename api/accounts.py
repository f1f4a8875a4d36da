"""API routes for account operations."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.dependencies import get_config, get_db_session, raise_for_result
from api.models import AccountCreate, AccountResponse, AccountUpdate
from api.services import AccountService
from src.famfin.core.config import AppConfig

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("/", response_model=list[AccountResponse])
async def get_accounts(include_inactive: bool = False, db: Session = Depends(get_db_session)) -> list[AccountResponse]:
    return AccountService.get_accounts(db, include_inactive=include_inactive)


@router.get("/summary")
async def get_accounts_summary(db: Session = Depends(get_db_session)) -> dict[str, Any]:
    """Total balance, total debt and net position across active accounts."""
    try:
        return AccountService.get_accounts_summary(db)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(account_id: int, db: Session = Depends(get_db_session)) -> AccountResponse:
    account = AccountService.get_account(db, account_id)
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    return account


@router.post("/", response_model=AccountResponse, status_code=201)
async def create_account(
    data: AccountCreate, db: Session = Depends(get_db_session), config: AppConfig = Depends(get_config)
) -> AccountResponse:
    result = raise_for_result(AccountService.create_account(db, data, config))
    return AccountService.get_account(db, result.id)


@router.put("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: int, update: AccountUpdate, db: Session = Depends(get_db_session)
) -> AccountResponse:
    raise_for_result(AccountService.update_account(db, account_id, update), "Account not found")
    return AccountService.get_account(db, account_id)


@router.delete("/{account_id}")
async def delete_account(account_id: int, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    """Deactivate an account; its transactions are kept."""
    raise_for_result(AccountService.delete_account(db, account_id), "Account not found")
    return {"success": True, "message": "Account deactivated"}
