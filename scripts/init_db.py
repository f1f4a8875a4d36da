#!/usr/bin/env python3
"""Initialize the FamFin database."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.famfin.core.config import AppConfig
from src.famfin.core.database import DatabaseManager


def main() -> None:
    """Create tables and seed default categories and family lookups."""
    config = AppConfig()
    config.ensure_dirs()

    db_manager = DatabaseManager(config)

    print(f"Creating database tables in {config.database.url}...")
    db_manager.create_tables()

    print("Initializing default categories...")
    created = db_manager.init_default_categories()
    print(f"  {created} categories created")

    print("Initializing payment frequencies...")
    created = db_manager.init_default_frequencies()
    print(f"  {created} frequencies created")

    print("Initializing fee and activity types...")
    created = db_manager.init_default_fee_types()
    print(f"  {created} fee types created")
    created = db_manager.init_default_activity_types()
    print(f"  {created} activity types created")

    print("Database initialization complete!")


if __name__ == "__main__":
    main()
