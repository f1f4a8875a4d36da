"""API routes for category operations."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from api.dependencies import get_db_session, raise_for_result
from api.models import CategoryBulkCreate, CategoryCreate, CategoryResponse, CategoryTreeResponse
from api.services import CategoryService
from src.famfin.core.models import CategoryType

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("/", response_model=list[CategoryResponse])
async def get_categories(
    category_type: CategoryType | None = Query(None),
    db: Session = Depends(get_db_session),
) -> list[CategoryResponse]:
    """Get all categories ordered by name."""
    return CategoryService.get_categories(session=db, category_type=category_type.value if category_type else None)


@router.get("/tree", response_model=CategoryTreeResponse)
async def get_category_tree(db: Session = Depends(get_db_session)) -> CategoryTreeResponse:
    """Categories arranged by their ``Parent:Child`` names."""
    return CategoryTreeResponse(categories=CategoryService.get_category_tree(db))


@router.post("/", response_model=CategoryResponse, status_code=201)
async def create_category(category: CategoryCreate, db: Session = Depends(get_db_session)) -> CategoryResponse:
    """Create a new category."""
    result = raise_for_result(CategoryService.create_category(session=db, category=category))
    return CategoryService.get_category(db, result.id)


@router.post("/bulk")
async def create_categories(request: CategoryBulkCreate, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    """Create several categories, returning a name to id map."""
    result = CategoryService.create_categories(db, request.categories)
    if not result["success"]:
        raise HTTPException(status_code=400, detail=result["error"])
    return result


@router.post("/defaults")
async def create_default_categories(db: Session = Depends(get_db_session)) -> dict[str, Any]:
    """Add the standard household categories that are missing."""
    try:
        created = CategoryService.create_default_categories(db)
        return {"success": True, "created": created}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: int, db: Session = Depends(get_db_session)) -> CategoryResponse:
    category = CategoryService.get_category(db, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category
