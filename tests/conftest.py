"""Shared fixtures: a throwaway SQLite database, seeded users and an API client."""
import os

os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from clinicsphere.main import app  # noqa: E402
from clinicsphere.core.database import Base, get_db  # noqa: E402
from clinicsphere.core.security import Caller, UserRole, create_access_token  # noqa: E402
from clinicsphere.models.appointment import Appointment  # noqa: E402,F401
from clinicsphere.models.user import User  # noqa: E402


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def users(db):
    """One admin, two doctors, two patients and one deactivated patient."""
    seeded = {
        "admin": User(email="admin@clinic.test", name="Ada Admin", role=UserRole.ADMIN),
        "doctor": User(email="house@clinic.test", name="Greg House", role=UserRole.DOCTOR,
                       specialization="Diagnostics"),
        "other_doctor": User(email="wilson@clinic.test", name="James Wilson", role=UserRole.DOCTOR,
                             specialization="Oncology"),
        "patient": User(email="pat@clinic.test", name="Pat Patient", role=UserRole.PATIENT),
        "other_patient": User(email="quinn@clinic.test", name="Quinn Patient", role=UserRole.PATIENT),
        "inactive": User(email="gone@clinic.test", name="Gone Patient", role=UserRole.PATIENT,
                         is_active=False),
    }
    db.add_all(seeded.values())
    db.commit()
    for user in seeded.values():
        db.refresh(user)
    return seeded


@pytest.fixture
def callers(users):
    return {key: Caller(id=user.id, role=user.role) for key, user in users.items()}


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app, base_url="http://testserver") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def auth_headers(users):
    """Bearer headers keyed like the ``users`` fixture."""
    def headers_for(user):
        token = create_access_token({"sub": user.id, "email": user.email, "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}

    return {key: headers_for(user) for key, user in users.items()}
