"""Budget management API endpoints: progress, portfolio summary and alerts."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.dependencies import get_config, get_db_session, get_now, raise_for_result
from api.models import BudgetCreate, BudgetResponse, BudgetUpdate
from api.services import BudgetService
from src.famfin.core.config import AppConfig
from src.famfin.core.models import BudgetProgress, BudgetSummary

router = APIRouter(prefix="/budgets", tags=["budgets"])


@router.get("/", response_model=list[BudgetResponse])
async def get_budgets(session: Session = Depends(get_db_session)) -> list[BudgetResponse]:
    """Get all active budgets."""
    return BudgetService.get_budgets(session)


@router.get("/summary", response_model=BudgetSummary)
async def get_budget_summary(
    session: Session = Depends(get_db_session),
    config: AppConfig = Depends(get_config),
    now: datetime = Depends(get_now),
) -> BudgetSummary:
    """Progress of every active budget for its current period, with totals."""
    try:
        return BudgetService.get_budget_summary(session, now, config.budgets.default_alert_threshold)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.post("/check-alerts")
async def check_budget_alerts(
    session: Session = Depends(get_db_session),
    config: AppConfig = Depends(get_config),
    now: datetime = Depends(get_now),
) -> dict[str, Any]:
    """Create today's alerts for budgets that are over or near their limit."""
    try:
        created = BudgetService.check_budget_alerts(session, now, config.budgets.default_alert_threshold)
        return {"success": True, "created": created}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/{budget_id}", response_model=BudgetResponse)
async def get_budget(budget_id: int, session: Session = Depends(get_db_session)) -> BudgetResponse:
    budget = BudgetService.get_budget(session, budget_id)
    if not budget:
        raise HTTPException(status_code=404, detail="Budget not found")
    return budget


@router.get("/{budget_id}/progress", response_model=BudgetProgress)
async def get_budget_progress(
    budget_id: int,
    session: Session = Depends(get_db_session),
    config: AppConfig = Depends(get_config),
    now: datetime = Depends(get_now),
) -> BudgetProgress:
    """Spending progress of one budget for the period containing today."""
    progress = BudgetService.get_budget_progress(session, budget_id, now, config.budgets.default_alert_threshold)
    if progress is None:
        raise HTTPException(status_code=404, detail="Budget not found")
    return progress


@router.post("/", response_model=BudgetResponse, status_code=201)
async def create_budget(data: BudgetCreate, session: Session = Depends(get_db_session)) -> BudgetResponse:
    result = raise_for_result(BudgetService.create_budget(session, data))
    return BudgetService.get_budget(session, result.id)


@router.put("/{budget_id}", response_model=BudgetResponse)
async def update_budget(
    budget_id: int, update: BudgetUpdate, session: Session = Depends(get_db_session)
) -> BudgetResponse:
    raise_for_result(BudgetService.update_budget(session, budget_id, update), "Budget not found")
    return BudgetService.get_budget(session, budget_id)


@router.delete("/{budget_id}")
async def delete_budget(budget_id: int, session: Session = Depends(get_db_session)) -> dict[str, Any]:
    """Deactivate a budget."""
    raise_for_result(BudgetService.delete_budget(session, budget_id), "Budget not found")
    return {"success": True, "message": "Budget deactivated"}
