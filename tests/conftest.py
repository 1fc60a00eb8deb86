import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment before the application reads its settings
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"

from hospital.main import app  # noqa: E402
from hospital import models  # noqa: E402,F401
from hospital.core.database import Base, get_db  # noqa: E402
from hospital.core.permissions import PermissionPolicy  # noqa: E402
from hospital.core.security import UserRole  # noqa: E402

from .factories import auth_headers, create_patient, create_staff_user  # noqa: E402

# In-memory test database shared by every session
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(test_db):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def client(test_db):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client
    # Tests may install their own permission table
    app.state.permission_policy = PermissionPolicy.default()

@pytest.fixture
def admin_user(db_session):
    return create_staff_user(db_session, "admin@hospital.co.ke", UserRole.ADMIN, department="Administration")

@pytest.fixture
def doctor_user(db_session):
    return create_staff_user(
        db_session, "doctor@hospital.co.ke", UserRole.DOCTOR,
        department="Cardiology", first_name="Amina", last_name="Odhiambo"
    )

@pytest.fixture
def receptionist_user(db_session):
    return create_staff_user(db_session, "reception@hospital.co.ke", UserRole.RECEPTIONIST, department="Front Office")

@pytest.fixture
def patient(db_session):
    return create_patient(db_session)

@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)

@pytest.fixture
def receptionist_headers(receptionist_user):
    return auth_headers(receptionist_user)
