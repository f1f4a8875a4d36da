"""API routes for data export operations."""

import io
import json
from datetime import date
from typing import Any

import pandas as pd
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session, joinedload

from api.dependencies import get_db_session
from api.models import ExportRequest
from src.famfin.core.database import CategoryORM, TransactionORM

router = APIRouter(prefix="/export", tags=["export"])

MEDIA_TYPES = {
    "csv": ("text/csv", "csv"),
    "excel": ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"),
    "json": ("application/json", "json"),
}


class ExportService:
    """Service for data export operations."""

    @staticmethod
    def get_export_data(
        session: Session,
        start_date: date | None = None,
        end_date: date | None = None,
        account_id: int | None = None,
        categories: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Get transaction data for export, newest first."""
        query = session.query(TransactionORM).options(
            joinedload(TransactionORM.category), joinedload(TransactionORM.account)
        )

        if start_date:
            query = query.filter(TransactionORM.date >= start_date)
        if end_date:
            query = query.filter(TransactionORM.date <= end_date)
        if account_id is not None:
            query = query.filter(TransactionORM.account_id == account_id)
        if categories:
            query = query.join(CategoryORM, TransactionORM.category_id == CategoryORM.id)
            query = query.filter(CategoryORM.name.in_(categories))

        transactions = query.order_by(TransactionORM.date.desc(), TransactionORM.id.desc()).all()

        return [
            {
                "id": t.id,
                "date": t.date.isoformat(),
                "account": t.account.name if t.account else None,
                "description": t.description,
                "payee": t.payee,
                "reference": t.reference,
                "amount": t.amount,
                "transaction_type": t.transaction_type,
                # Signed amount as it affects the balance
                "signed_amount": -t.amount if t.transaction_type == "expense" else t.amount,
                "category": t.category.name if t.category else None,
                "category_type": t.category.category_type if t.category else None,
                "notes": t.notes,
                "import_id": t.import_id,
            }
            for t in transactions
        ]

    @staticmethod
    def export_to_csv(data: list[dict[str, Any]]) -> str:
        """Export data to CSV format."""
        if not data:
            return "No data to export"

        df = pd.DataFrame(data)
        return df.to_csv(index=False)

    @staticmethod
    def export_to_excel(data: list[dict[str, Any]]) -> bytes:
        """Export data to an Excel workbook with category and monthly summary sheets."""
        buffer = io.BytesIO()
        df = pd.DataFrame(data)

        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Transactions", index=False)

            if data and df["category"].notna().any():
                category_summary = (
                    df.groupby(["category", "transaction_type"]).agg({"amount": ["count", "sum", "mean"]}).round(2)
                )
                category_summary.columns = ["Transaction_Count", "Total_Amount", "Avg_Amount"]
                category_summary.to_excel(writer, sheet_name="Category_Summary")

            if data:
                df["month"] = pd.to_datetime(df["date"]).dt.to_period("M").astype(str)
                monthly_summary = (
                    df.groupby(["month", "transaction_type"]).agg({"amount": ["count", "sum"]}).round(2)
                )
                monthly_summary.columns = ["Transaction_Count", "Total_Amount"]
                monthly_summary.to_excel(writer, sheet_name="Monthly_Summary")

        return buffer.getvalue()

    @staticmethod
    def export_to_json(data: list[dict[str, Any]]) -> str:
        """Export data to JSON format."""
        return json.dumps(data, indent=2, default=str)

    @staticmethod
    def render(data: list[dict[str, Any]], export_format: str, filename: str) -> Response:
        if export_format == "csv":
            content: str | bytes = ExportService.export_to_csv(data)
        elif export_format == "excel":
            content = ExportService.export_to_excel(data)
        elif export_format == "json":
            content = ExportService.export_to_json(data)
        else:
            raise HTTPException(status_code=400, detail="Unsupported export format")

        media_type, extension = MEDIA_TYPES[export_format]
        return Response(
            content=content,
            media_type=media_type,
            headers={"Content-Disposition": f"attachment; filename={filename}.{extension}"},
        )


def _export_filename(start_date: date | None, end_date: date | None) -> str:
    date_suffix = ""
    if start_date and end_date:
        date_suffix = f"_{start_date}_{end_date}"
    elif start_date:
        date_suffix = f"_from_{start_date}"
    elif end_date:
        date_suffix = f"_until_{end_date}"
    return f"famfin_transactions{date_suffix}"


@router.get("/transactions")
async def export_transactions(
    format: str = Query("csv", pattern="^(csv|excel|json)$"),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    account_id: int | None = Query(None),
    categories: list[str] | None = Query(None),
    db: Session = Depends(get_db_session),
) -> Response:
    """Download transactions in the requested format."""
    try:
        data = ExportService.get_export_data(db, start_date, end_date, account_id, categories)
        return ExportService.render(data, format, _export_filename(start_date, end_date))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Export failed: {str(e)}") from e


@router.post("/transactions")
async def export_transactions_with_request(
    request: ExportRequest,
    db: Session = Depends(get_db_session),
) -> Response:
    """Export transactions described by a request body."""
    try:
        data = ExportService.get_export_data(
            session=db,
            start_date=request.start_date,
            end_date=request.end_date,
            account_id=request.account_id,
            categories=request.categories,
        )

        if not data:
            raise HTTPException(status_code=404, detail="No transactions found for export")

        return ExportService.render(data, request.format, _export_filename(request.start_date, request.end_date))

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Export failed: {str(e)}") from e


@router.get("/formats")
async def get_supported_formats() -> dict[str, Any]:
    """Get list of supported export formats and their descriptions."""
    return {
        "formats": {
            "csv": {
                "name": "CSV",
                "description": "Comma-separated values file for spreadsheet applications",
                "extension": "csv",
                "content_type": MEDIA_TYPES["csv"][0],
            },
            "excel": {
                "name": "Excel",
                "description": "Excel workbook with category and monthly summary sheets",
                "extension": "xlsx",
                "content_type": MEDIA_TYPES["excel"][0],
            },
            "json": {
                "name": "JSON",
                "description": "JavaScript Object Notation for programmatic access",
                "extension": "json",
                "content_type": MEDIA_TYPES["json"][0],
            },
        }
    }
