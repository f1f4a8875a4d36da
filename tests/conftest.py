"""Pytest configuration and shared fixtures."""

import os
import shutil
import sys
import tempfile
from datetime import date, datetime
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.famfin.core.database import AccountORM, Base, CategoryORM, TransactionORM  # noqa: E402

# Reference instant used by every API test: mid-March, a Friday.
FIXED_NOW = datetime(2024, 3, 15, 12, 0, 0)


@pytest.fixture(scope="function")
def temp_db():
    """Create a temporary database for testing."""
    db_fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(db_fd)

    engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)

    yield engine

    engine.dispose()
    os.unlink(db_path)


@pytest.fixture(scope="function")
def db_session(temp_db):
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=temp_db)
    session = SessionLocal()

    yield session

    session.close()


@pytest.fixture(scope="function")
def test_client(temp_db, db_session):
    """Create a test client bound to the temporary database and a fixed clock."""
    temp_data_dir = tempfile.mkdtemp()

    os.environ["FAMFIN_DB_URL"] = f"sqlite:///{temp_db.url.database}"
    os.environ["FAMFIN_DATA_DIR"] = temp_data_dir

    # Import after setting env vars; create_app seeds categories and frequencies
    from main import create_app

    app = create_app()

    from api.dependencies import get_db_session, get_now

    def override_get_db_session():
        return db_session

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_now] = lambda: FIXED_NOW

    client = TestClient(app)

    yield client

    app.dependency_overrides.clear()
    shutil.rmtree(temp_data_dir)


@pytest.fixture
def account(db_session):
    """An active transaction account."""
    acct = AccountORM(name="Everyday", account_type="transaction", current_balance=1000.0)
    db_session.add(acct)
    db_session.commit()
    return acct


@pytest.fixture
def categories(db_session):
    """A small category set keyed by name, reusing seeded rows where present."""
    wanted = [
        ("Groceries", "expense"),
        ("Dining Out", "expense"),
        ("Kids:School", "expense"),
        ("Kids:Sport", "expense"),
        ("Salary", "income"),
        ("Transfer", "transfer"),
    ]
    rows = {}
    for name, category_type in wanted:
        row = db_session.query(CategoryORM).filter(CategoryORM.name == name).first()
        if row is None:
            row = CategoryORM(name=name, category_type=category_type)
            db_session.add(row)
        rows[name] = row
    db_session.commit()
    return rows


@pytest.fixture
def add_transaction(db_session, account):
    """Factory inserting a transaction into the test account."""

    def _add(
        description: str,
        amount: float,
        txn_date: date = date(2024, 3, 10),
        transaction_type: str = "expense",
        category=None,
        payee: str | None = None,
        reference: str | None = None,
    ) -> TransactionORM:
        txn = TransactionORM(
            account_id=account.id,
            category_id=category.id if category is not None else None,
            date=txn_date,
            description=description,
            amount=amount,
            transaction_type=transaction_type,
            payee=payee,
            reference=reference,
        )
        db_session.add(txn)
        db_session.commit()
        return txn

    return _add


@pytest.fixture
def child(test_client):
    """A child family member created through the API."""
    response = test_client.post(
        "/api/family/members",
        json={"name": "Ava", "member_type": "child", "relationship": "daughter", "date_of_birth": "2015-06-01"},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def school(test_client):
    response = test_client.post(
        "/api/schools/", json={"name": "Hillside Primary", "school_type": "primary", "sector": "public"}
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def enrolment(test_client, child, school):
    """The child enrolled in Year 3 at the school."""
    response = test_client.post(
        "/api/schools/enrolments",
        json={"family_member_id": child["id"], "school_id": school["id"], "year_level": "Year 3"},
    )
    assert response.status_code == 201, response.text
    return response.json()
