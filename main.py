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


import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware
from config import get_settings
from database import engine, SessionLocal
from models import Base, Role
from crud_ops import NotFoundError, create_user, get_user_by_username
from answers import RejectReason, SubmissionRejected
from csv_import import CsvImportError
from router_auth import router as auth_router
from router_users import router as users_router
from router_courses import router as courses_router
from router_projects import router as projects_router
from router_groups import router as groups_router
from router_subjects import router as subjects_router, question_router
from router_grades import router as grades_router, performance_router, project_subject_router
from router_files import csv_router, pdf_router
import bleach

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("gradesave")

app = FastAPI(title="GradeSave")

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=settings.cors_origin_regex,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Set-Cookie"],
)
app.add_middleware(SessionMiddleware, secret_key=settings.secret_key, same_site="lax")

# auth first: /api/users/me must not be taken for a user id
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(courses_router)
app.include_router(projects_router)
app.include_router(groups_router)
app.include_router(subjects_router)
app.include_router(question_router)
app.include_router(grades_router)
app.include_router(performance_router)
app.include_router(project_subject_router)
app.include_router(csv_router)
app.include_router(pdf_router)


def _error(status_code: int, detail: str, **extra):
    return JSONResponse(status_code=status_code, content={"detail": detail, **extra})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(status.HTTP_404_NOT_FOUND, str(exc))


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return _error(status.HTTP_400_BAD_REQUEST, str(exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error.get('msg')}")
    return _error(status.HTTP_400_BAD_REQUEST, "Validation Error: " + "; ".join(messages))


@app.exception_handler(SubmissionRejected)
async def submission_rejected_handler(request: Request, exc: SubmissionRejected):
    if exc.reason == RejectReason.ALREADY_SUBMITTED:
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    return _error(status_code, exc.message, reason=exc.reason.value)


@app.exception_handler(CsvImportError)
async def csv_import_error_handler(request: Request, exc: CsvImportError):
    return _error(status.HTTP_400_BAD_REQUEST, str(exc))


@app.exception_handler(PermissionError)
async def permission_error_handler(request: Request, exc: PermissionError):
    return _error(status.HTTP_403_FORBIDDEN, str(exc))


@app.exception_handler(NotImplementedError)
async def not_implemented_handler(request: Request, exc: NotImplementedError):
    return _error(status.HTTP_501_NOT_IMPLEMENTED, str(exc))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# Create database tables
Base.metadata.create_all(bind=engine)


def init_db():
    """Create the configured admin account if it does not exist yet."""
    db = SessionLocal()
    try:
        admin_username = bleach.clean(settings.admin_username)
        if not get_user_by_username(db, admin_username):
            create_user(db, admin_username, settings.admin_password, Role.ADMIN, "Admin", "Admin")
            logger.info("Admin user '%s' created", admin_username)
    finally:
        db.close()


init_db()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8080)
