# GradeSave - Notenverwaltung
# Copyright (C) 2026 (linuxdev)
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import os
import uuid
import tempfile
from datetime import date
from types import SimpleNamespace

# must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GRADESAVE_CONFIG"] = os.path.join(tempfile.gettempdir(), f"gradesave-{uuid.uuid4().hex}.json")
os.environ["PDF_OUTPUT_DIR"] = tempfile.mkdtemp(prefix="gradesave-pdfs-")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import crud_ops
from config import Settings, get_settings
from database import Base, get_db
from main import app
from models import Role

PASSWORD = "secret"


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="sqlite://",
        secret_key="test-secret",
        pdf_output_dir=str(tmp_path / "pdfs"),
    )


@pytest.fixture
def make_client(session_factory, settings):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings

    def _make(user=None, password=PASSWORD):
        client = TestClient(app)
        if user is not None:
            response = client.post("/api/users/login", json={"username": user.username, "password": password})
            assert response.status_code == 200, response.text
        return client

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"value": 0}

    def _make(first_name="Max", last_name="Mustermann", role=Role.STUDENT, username=None):
        counter["value"] += 1
        username = username or f"{first_name}.{last_name}.{counter['value']}".lower()
        return crud_ops.create_user(db, username, PASSWORD, role, first_name, last_name)

    return _make


@pytest.fixture
def admin(make_user):
    return make_user("Ada", "Admin", Role.ADMIN, username="ada")


@pytest.fixture
def school(db, make_user):
    """One course with a class teacher, three students and a project with one group."""
    teacher = make_user("Tina", "Teacher", Role.TEACHER, username="tina")
    zeta = make_user("Zoe", "Zeta")
    adams = make_user("anna", "adams")
    mueller = make_user("Max", "Mueller")

    course = crud_ops.create_course(db, "10A", teacher.id)
    for student in (zeta, adams, mueller):
        crud_ops.add_user_to_course(db, course, student)

    project = crud_ops.create_project(db, "Solar Car", course.id, date(2026, 3, 1))
    group = crud_ops.create_group(db, "Team Red", project, [adams, zeta])

    return SimpleNamespace(teacher=teacher, zeta=zeta, adams=adams, mueller=mueller,
                           course=course, project=project, group=group)
