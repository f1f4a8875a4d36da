"""Analytics API endpoints for FamFin charts."""

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from api.dependencies import get_config, get_db_session
from api.models import ChartSummaryResponse, TransactionResponse
from api.services import ChartService
from src.famfin.core.config import AppConfig
from src.famfin.core.models import ChartGroup, TransactionType

router = APIRouter(prefix="/analytics", tags=["analytics"])


def chart_filters(
    account_id: int | None = Query(None),
    category_id: str | None = Query(None, pattern=r"^(\d+|uncategorised)$"),
    transaction_type: TransactionType | None = Query(None),
    date_from: date | None = Query(None, description="Start date for analysis"),
    date_to: date | None = Query(None, description="End date for analysis"),
    search: str | None = Query(None),
) -> dict[str, Any]:
    """Filters shared by every chart endpoint and its popup."""
    return {
        "account_id": account_id,
        "category_id": category_id,
        "transaction_type": transaction_type,
        "date_from": date_from,
        "date_to": date_to,
        "search": search,
    }


@router.get("/chart-summary", response_model=ChartSummaryResponse)
async def get_chart_summary(
    filters: dict[str, Any] = Depends(chart_filters),
    session: Session = Depends(get_db_session),
    config: AppConfig = Depends(get_config),
) -> ChartSummaryResponse:
    """Totals, every category group and the top payees for the filtered set."""
    try:
        return ChartService.get_chart_summary(session, payee_top_n=config.budgets.payee_summary_top_n, **filters)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/top-categories", response_model=list[ChartGroup])
async def get_top_categories(
    top_n: int | None = Query(None, ge=1, le=100),
    filters: dict[str, Any] = Depends(chart_filters),
    session: Session = Depends(get_db_session),
    config: AppConfig = Depends(get_config),
) -> list[ChartGroup]:
    """Spending by parent category, largest first."""
    try:
        return ChartService.get_top_categories(session, top_n or config.budgets.chart_top_n, **filters)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/top-payees", response_model=list[ChartGroup])
async def get_top_payees(
    top_n: int | None = Query(None, ge=1, le=100),
    filters: dict[str, Any] = Depends(chart_filters),
    session: Session = Depends(get_db_session),
    config: AppConfig = Depends(get_config),
) -> list[ChartGroup]:
    """Spending by payee, largest first."""
    try:
        return ChartService.get_top_payees(session, top_n or config.budgets.chart_top_n, **filters)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/chart-transactions", response_model=list[TransactionResponse])
async def get_chart_transactions(
    group_by: str = Query(..., pattern="^(category|payee)$"),
    value: str = Query(..., min_length=1, description="Category group or payee name"),
    filters: dict[str, Any] = Depends(chart_filters),
    session: Session = Depends(get_db_session),
) -> list[TransactionResponse]:
    """Transactions behind one chart bar."""
    try:
        return ChartService.get_transactions_for_chart_popup(session, group_by, value, **filters)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
