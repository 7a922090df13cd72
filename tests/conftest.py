from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.database import Base, get_db
from backend.main import app


@pytest.fixture()
def db_session() -> Generator:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db_session) -> Generator[TestClient, None, None]:
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    # Tests use an in-memory DB via dependency override; skip app startup side effects.
    original_startup = list(app.router.on_startup)
    app.router.on_startup.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.router.on_startup[:] = original_startup
    app.dependency_overrides.clear()


@pytest.fixture()
def report_payload() -> dict:
    return {
        "patient_name": "John Q Public",
        "age": 34,
        "sex": "Male",
        "doctor_name": "Dr. Asha Rao",
        "mobile": "9876543210",
        "test_name": "Skin Prick Test - Inhalants",
        "test_items": [
            {"kind": "heading", "text": "CONTROLS"},
            {"kind": "result", "row_label": "C1", "antigen": "Saline", "wheal_diameter": 0, "is_positive": False},
            {"kind": "result", "row_label": "C2", "antigen": "Histamine", "wheal_diameter": 6, "is_positive": True},
            {"kind": "heading", "text": "MITES"},
            {"kind": "result", "row_label": "A1", "antigen": "D. pteronyssinus", "wheal_diameter": "4", "is_positive": True},
        ],
        "medications": [
            {"name": "Levocetirizine", "dosage": "5 mg", "frequency": "Once daily", "duration": "10 days"},
        ],
        "generated_at": "2024-03-02T15:05:00",
    }
