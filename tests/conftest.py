"""
Shared test fixtures.

Points the app at in-memory SQLite before any levelminds import, then provides
a per-test database, an API client wired to it, factory fixtures and a
captured email outbox.
"""
import os

# === Set environment BEFORE any levelminds imports ===
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"

import io
from datetime import date, timedelta
from typing import List, Optional

import jwt
import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from levelminds.core.config import settings
from levelminds.core.database import get_db, init_db
from levelminds.main import app
from levelminds.models.application import Application
from levelminds.models.job import Job
from levelminds.models.skill import Category, CoreSkill
from levelminds.models.user import School, Student, User
from levelminds.services.email_service import EmailService


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def client(db):
    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Every email the app tries to send, as (to, subject, html)"""
    sent = []

    def _capture(self, to_email, subject, html_body):
        sent.append((to_email, subject, html_body))
        return True

    monkeypatch.setattr(EmailService, "_send_email", _capture)
    return sent


def _bearer(user: User) -> dict:
    token = jwt.encode({"sub": user.id}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Factory fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def make_admin(db):
    def _factory(email: str = "admin@levelminds.in") -> User:
        user = User(name="Admin", email=email, password="x", role="admin", isOnboardingComplete=True)
        db.add(user)
        db.commit()
        return user

    return _factory


@pytest.fixture
def make_school(db):
    def _factory(
        name: str = "Green Valley School",
        email: str = "school@example.com",
        address: str = "12 MG Road",
        city: str = "Bengaluru",
        state: str = "Karnataka",
        pincode: str = "560001",
    ) -> School:
        user = User(name=name, email=email, password="x", role="school", isOnboardingComplete=True)
        db.add(user)
        db.flush()
        school = School(userId=user.id, address=address, city=city, state=state, pincode=pincode)
        db.add(school)
        db.commit()
        return school

    return _factory


@pytest.fixture
def make_student(db):
    def _factory(email: str = "asha@example.com", first_name: str = "Asha", last_name: str = "Rao") -> Student:
        user = User(name=f"{first_name} {last_name}", email=email, password="x", role="student",
                    isOnboardingComplete=True)
        db.add(user)
        db.flush()
        student = Student(userId=user.id, firstName=first_name, lastName=last_name, mobile="9876543210")
        db.add(student)
        db.commit()
        return student

    return _factory


@pytest.fixture
def make_core_skill(db):
    def _factory(name: str = "Mathematics", subskills: Optional[List[str]] = None) -> CoreSkill:
        skill = CoreSkill(name=name, subSkills=subskills or ["Algebra", "Geometry"])
        db.add(skill)
        db.commit()
        return skill

    return _factory


@pytest.fixture
def make_category(db):
    def _factory(name: str = "MathTeacher", skills: Optional[List[CoreSkill]] = None) -> Category:
        category = Category(name=name, coreSkillIds=[s.id for s in (skills or [])])
        db.add(category)
        db.commit()
        return category

    return _factory


@pytest.fixture
def make_job(db):
    def _factory(school: School, category: Category, **overrides) -> Job:
        fields = dict(
            title="Mathematics Teacher",
            location=school.full_address,
            applicationEndDate=date.today() + timedelta(days=30),
            subjectsToTeach=["Mathematics"],
            minSalaryLPA=4.0,
            maxSalaryLPA=6.0,
            jobDescription="Teach secondary mathematics.",
            keyResponsibilities="Plan lessons and grade work.",
            requirements="B.Ed with mathematics major.",
            status="open",
        )
        fields.update(overrides)
        job = Job(schoolId=school.id, categoryId=category.id, **fields)
        db.add(job)
        db.commit()
        return job

    return _factory


@pytest.fixture
def make_application(db):
    def _factory(student: Student, job: Job, status: str = "applied") -> Application:
        application = Application(studentId=student.id, jobId=job.id, status=status, coverLetter="Hello")
        db.add(application)
        db.commit()
        return application

    return _factory


@pytest.fixture
def xlsx_bytes():
    """Build an in-memory workbook from a header row and data rows"""

    def _build(header: list, rows: list) -> bytes:
        workbook = Workbook()
        sheet = workbook.active
        sheet.append(header)
        for row in rows:
            sheet.append(row)
        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    return _build


@pytest.fixture
def auth_headers():
    """Bearer headers for any user, as the auth service would mint them"""
    return _bearer
