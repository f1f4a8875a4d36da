"""FastAPI application entry point."""

import logging
import time

import uvicorn
from fastapi import FastAPI, Request

from src.famfin.core.config import AppConfig
from src.famfin.core.database import DatabaseManager


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    config = AppConfig()
    logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = FastAPI(
        title="FamFin - Family Finance",
        description="Household budgeting, transaction import and family cost tracking",
        version="0.1.0",
    )

    # Initialize database and seed reference data
    config.ensure_dirs()

    db_manager = DatabaseManager(config)
    db_manager.create_tables()
    db_manager.init_default_categories()
    db_manager.init_default_frequencies()
    db_manager.init_default_fee_types()
    db_manager.init_default_activity_types()

    # Store in app state
    app.state.config = config
    app.state.db_manager = db_manager

    # Add performance monitoring middleware
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        if process_time > 0.1:
            logging.warning("SLOW REQUEST: %s %s took %.3fs", request.method, request.url.path, process_time)
        elif process_time > 0.05:
            logging.info("Request %s %s took %.3fs", request.method, request.url.path, process_time)

        return response

    # Include API routes
    from api.accounts import router as accounts_router
    from api.analytics import router as analytics_router
    from api.budgets import router as budgets_router
    from api.categories import router as categories_router
    from api.export import router as export_router
    from api.family import router as family_router
    from api.notifications import router as notifications_router
    from api.rules import router as rules_router
    from api.schools import router as schools_router
    from api.transactions import router as transactions_router
    from api.upload import router as upload_router

    app.include_router(transactions_router, prefix="/api")
    app.include_router(categories_router, prefix="/api")
    app.include_router(accounts_router, prefix="/api")
    app.include_router(rules_router, prefix="/api")
    app.include_router(budgets_router, prefix="/api")
    app.include_router(notifications_router, prefix="/api")
    app.include_router(analytics_router, prefix="/api")
    app.include_router(upload_router, prefix="/api")
    app.include_router(export_router, prefix="/api")
    app.include_router(family_router, prefix="/api")
    app.include_router(schools_router, prefix="/api")

    @app.get("/")
    async def root():
        return {"name": app.title, "version": app.version, "docs": "/docs"}

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
