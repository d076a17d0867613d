import os
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker


# Ensure `import backend.jobportal...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Config is read once at import time, so these must be in place before any
# test module imports the package.
os.environ["DISABLE_DOTENV"] = "1"
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="jobportal-uploads-"))
os.environ["STORAGE_BACKEND"] = "local"
# Never talk to a real SMTP server from tests.
os.environ["EMAIL_ENABLED"] = "0"

STRONG_PASSWORD = "Testpass123"
COVER_LETTER = (
    "I am excited to apply for this role. My coursework and internship "
    "experience make me a strong fit for the team."
)


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite3"


@pytest.fixture()
def app(test_db_path: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> FastAPI:
    """
    Create a FastAPI app wired to a temporary SQLite DB.

    `backend.jobportal.main` is not used directly so its startup hook never
    touches the developer database.
    """
    from backend.jobportal import config
    from backend.jobportal import database as db

    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(config, "STORAGE_BACKEND", "local")
    monkeypatch.setattr(config, "EMAIL_ENABLED", False)

    engine = db.make_engine(f"sqlite:///{test_db_path}")
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Patch the shared database module so router dependencies use the test DB.
    monkeypatch.setattr(db, "engine", engine)
    monkeypatch.setattr(db, "SessionLocal", TestingSessionLocal)

    # Import models so Base metadata is populated, then create tables.
    from backend.jobportal import models  # noqa: F401

    db.Base.metadata.drop_all(bind=engine)
    db.Base.metadata.create_all(bind=engine)

    from backend.jobportal.api import admin as admin_api
    from backend.jobportal.api import applications as applications_api
    from backend.jobportal.api import auth as auth_api
    from backend.jobportal.api import companies as companies_api
    from backend.jobportal.api import jobs as jobs_api
    from backend.jobportal.api import students as students_api
    from backend.jobportal.main import register_exception_handlers

    fastapi_app = FastAPI()
    fastapi_app.include_router(auth_api.router)
    fastapi_app.include_router(students_api.router)
    fastapi_app.include_router(companies_api.router)
    fastapi_app.include_router(jobs_api.router)
    fastapi_app.include_router(applications_api.router)
    fastapi_app.include_router(admin_api.router)
    register_exception_handlers(fastapi_app)

    return fastapi_app


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db_session(app: FastAPI):
    """
    Direct SQLAlchemy session bound to the same temporary SQLite DB used by the test app.
    """
    from backend.jobportal import database

    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


# -------------------- helpers shared by the API tests --------------------

def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def signup(client: TestClient, *, email: str, role: str, name: str = "Test User", password: str = STRONG_PASSWORD) -> dict:
    r = client.post(
        "/auth/signup",
        json={"email": email, "password": password, "role": role, "display_name": name},
    )
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture()
def make_user(client: TestClient):
    """Sign up a user and return (user payload, auth headers)."""
    def _make(email: str, role: str, name: str = "Test User"):
        data = signup(client, email=email, role=role, name=name)
        return data["user"], auth_headers(data["access_token"])
    return _make


@pytest.fixture()
def make_admin(db_session):
    """Admins can't sign up through the API; create one directly."""
    def _make(email: str = "admin@example.com", name: str = "Site Admin"):
        from backend.jobportal.models.user import User
        from backend.jobportal.utils.jwt import create_access_token
        from backend.jobportal.utils.security import hash_password

        admin = User(email=email, display_name=name, password=hash_password(STRONG_PASSWORD), role="admin")
        db_session.add(admin)
        db_session.commit()
        db_session.refresh(admin)
        token = create_access_token({"sub": str(admin.id), "role": "admin"})
        return admin, auth_headers(token)
    return _make


@pytest.fixture()
def recruiter_with_job(client: TestClient, make_user):
    """A recruiter, their company and one active job."""
    recruiter, headers = make_user("recruiter@example.com", "recruiter", "Rita Recruiter")
    r = client.post("/companies", data={"name": "Acme Corp", "industry": "Software"}, headers=headers)
    assert r.status_code == 201, r.text
    company = r.json()["company"]

    r = client.post(
        "/jobs",
        json={
            "company_id": company["id"],
            "title": "Backend Intern",
            "description": "Build APIs with Python and SQL.",
            "type": "internship",
            "experience_level": "entry",
            "location": "Remote",
            "skills": ["Python", "SQL"],
            "status": "active",
        },
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return {"recruiter": recruiter, "headers": headers, "company": company, "job": r.json()["job"]}


@pytest.fixture()
def student_with_resume(client: TestClient, make_user):
    student, headers = make_user("student@example.com", "student", "Sam Student")
    r = client.post(
        "/students/me/resume",
        files={"file": ("resume.pdf", b"%PDF-1.4 fake resume", "application/pdf")},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return {"student": student, "headers": headers}
