"""Dependency injection for API routes."""

from collections.abc import Generator
from datetime import datetime

from fastapi import HTTPException, Request

from src.famfin.core.config import AppConfig
from src.famfin.core.database import DatabaseManager
from src.famfin.core.models import MutationResult


def get_config(request: Request) -> AppConfig:
    """Get application configuration from app state."""
    return request.app.state.config


def get_db_manager(request: Request) -> DatabaseManager:
    """Get database manager from app state."""
    return request.app.state.db_manager


def get_db_session(request: Request) -> Generator:
    """Get database session."""
    db_manager = get_db_manager(request)
    with db_manager.get_session() as session:
        yield session


def get_now() -> datetime:
    """Reference instant for period and due-date calculations."""
    return datetime.now()


def raise_for_result(result: MutationResult | None, not_found: str = "Not found") -> MutationResult:
    """Translate a service mutation result into HTTP errors.

    None means the target row does not exist (404); an unsuccessful result
    is a rejected mutation (400).
    """
    if result is None:
        raise HTTPException(status_code=404, detail=not_found)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return result
