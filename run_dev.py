#!/usr/bin/env python3
"""Run FamFin in development mode against a separate database."""

import os
import subprocess
import sys
from pathlib import Path


def setup_dev_database():
    """Create tables, seed reference data and make sure one account exists."""
    from api.models import AccountCreate
    from api.services import AccountService
    from src.famfin.core.config import AppConfig
    from src.famfin.core.database import DatabaseManager

    config = AppConfig()
    config.ensure_dirs()
    db_manager = DatabaseManager(config)

    db_manager.create_tables()
    if db_manager.init_default_categories():
        print("✅ Created default categories")
    db_manager.init_default_frequencies()
    db_manager.init_default_fee_types()
    db_manager.init_default_activity_types()

    with db_manager.get_session() as session:
        accounts = AccountService.get_accounts(session)
        if not accounts:
            AccountService.create_account(
                session, AccountCreate(name="Everyday", account_type="transaction"), config
            )
            print("✅ Created 'Everyday' account for CSV imports")
        else:
            print(f"✅ Database has {len(accounts)} accounts")


def main():
    """Run FamFin in development mode."""
    os.environ.setdefault("FAMFIN_DB_URL", "sqlite:///data/famfin_dev.db")
    os.environ.setdefault("FAMFIN_LOG_LEVEL", "DEBUG")

    app_dir = Path(__file__).parent
    port = os.environ.get("FAMFIN_DEV_PORT", "8001")
    host = os.environ.get("FAMFIN_HOST", "0.0.0.0")

    print("Starting FamFin in DEVELOPMENT mode")
    print(f"📊 Database: {os.environ['FAMFIN_DB_URL']}")

    setup_dev_database()

    print(f"📚 API docs available at: http://localhost:{port}/docs")
    print("-" * 50)

    try:
        subprocess.run(
            [sys.executable, "-m", "uvicorn", "main:app", "--reload", "--host", host, "--port", port],
            cwd=app_dir,
        )
    except KeyboardInterrupt:
        print("\n👋 FamFin development mode stopped.")


if __name__ == "__main__":
    main()
