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

"""Bulk creation of accounts from semicolon separated files.

Expected layout (header names are case-insensitive)::

    name;lastname;classname;role
    John;Doe;Test Class;STUDENT

``name`` and ``lastname`` are required, ``classname`` and ``role`` optional.
Every created account gets a random password which only ends up in the
credentials PDF rendered at the end of the import.
"""

import csv
import io
import logging
from typing import List, NamedTuple, Optional
from sqlalchemy.orm import Session
import crud_ops
import pdf_service
from config import Settings
from models import Role
from schemas import CreatedUser, CsvImportResult, CsvMetadata, CsvType

logger = logging.getLogger(__name__)

DELIMITER = ";"
REQUIRED_COLUMNS = ("name", "lastname")


class CsvImportError(Exception):
    """The file as a whole cannot be imported."""


class UserRow(NamedTuple):
    row_number: int
    first_name: str
    last_name: str
    class_name: Optional[str]
    role: Role


def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise CsvImportError("File is not UTF-8 encoded")


def _is_blank(row) -> bool:
    return not any(field.strip() for field in row)


def parse_role(value: str, row_number: int, result: CsvImportResult) -> Role:
    if not value:
        return Role.STUDENT
    try:
        return Role(value.strip().upper())
    except ValueError:
        logger.warning("Invalid role '%s' in row %s, defaulting to STUDENT", value, row_number)
        result.warnings.append(f"Row {row_number}: unknown role '{value}', defaulting to role STUDENT")
        return Role.STUDENT


def parse_users(text: str, result: CsvImportResult) -> List[UserRow]:
    reader = csv.reader(io.StringIO(text), delimiter=DELIMITER)

    header = None
    for row in reader:
        if not _is_blank(row):
            header = [name.strip().lower() for name in row]
            break
    if header is None:
        raise CsvImportError("No content in file")

    missing = [name for name in REQUIRED_COLUMNS if name not in header]
    if missing:
        raise CsvImportError("Missing required columns: " + ", ".join(missing))

    columns = {}
    for position, name in enumerate(header):
        columns.setdefault(name, position)

    rows = []
    for row in reader:
        if _is_blank(row):
            continue
        row_number = reader.line_num
        values = [field.strip() for field in row]

        def field(name):
            position = columns.get(name)
            if position is None or position >= len(values):
                return ""
            return values[position]

        first_name, last_name = field("name"), field("lastname")
        if not first_name or not last_name:
            result.failed += 1
            result.errors.append(f"Row {row_number}: missing mandatory fields 'name' and 'lastname'")
            continue

        role = parse_role(field("role"), row_number, result)
        rows.append(UserRow(row_number, first_name, last_name, field("classname") or None, role))

    return rows


def base_username(first_name: str, last_name: str) -> str:
    return "".join(f"{first_name}.{last_name}".lower().split())


def unique_username(db: Session, base: str, max_attempts: int) -> Optional[str]:
    """First free name out of ``base``, ``base1``, ``base2``... or None."""
    for attempt in range(max_attempts):
        candidate = base if attempt == 0 else f"{base}{attempt}"
        if not crud_ops.username_exists(db, candidate):
            return candidate
    return None


def course_names(row: UserRow) -> List[str]:
    if not row.class_name:
        return []
    # only staff may be listed in several classes
    if row.role in (Role.TEACHER, Role.ADMIN):
        return [name.strip() for name in row.class_name.split(",") if name.strip()]
    return [row.class_name.strip()]


def import_users(db: Session, rows: List[UserRow], result: CsvImportResult, settings: Settings):
    credentials = []

    for row in rows:
        first_name = crud_ops.sanitize(row.first_name)
        last_name = crud_ops.sanitize(row.last_name)

        username = unique_username(db, base_username(first_name, last_name), settings.max_username_attempts)
        if username is None:
            logger.warning("No free username for %s %s after %s attempts", first_name, last_name,
                           settings.max_username_attempts)
            result.failed += 1
            result.errors.append(
                f"Row {row.row_number}: failed to create unique username for {first_name} {last_name}, "
                f"reached limit of {settings.max_username_attempts} attempts"
            )
            continue

        password = crud_ops.generate_password(settings.password_length)
        try:
            user = crud_ops.create_user(db, username, password, row.role, first_name, last_name, commit=False)
        except ValueError as exc:
            result.failed += 1
            result.errors.append(f"Row {row.row_number}: {exc}")
            continue

        enrolled = []
        for name in course_names(row):
            course = crud_ops.get_course_by_name(db, name)
            if course is None:
                logger.warning("Course '%s' does not exist for user %s %s", name, first_name, last_name)
                result.warnings.append(f"Row {row.row_number}: course '{name}' does not exist, not enrolled")
                continue
            crud_ops.add_user_to_course(db, course, user, commit=False)
            enrolled.append(course.course_name)

        result.processed += 1
        result.created.append(CreatedUser(username=username, first_name=first_name, last_name=last_name,
                                          role=row.role, courses=enrolled))
        credentials.append(pdf_service.CredentialEntry(username, password, first_name, last_name, enrolled))

    db.commit()
    logger.info("Successfully imported %s users from CSV", len(credentials))

    if credentials:
        try:
            path = pdf_service.generate_bulk_user_credentials_pdf(credentials, settings.pdf_output_dir)
            result.credentials_file = path.name
        except Exception:
            # accounts stay created, the admin can reset passwords
            logger.exception("Failed to generate bulk PDF")
            result.warnings.append("Credentials document could not be generated")


def _import_user_file(db: Session, text: str, settings: Settings) -> CsvImportResult:
    result = CsvImportResult()
    rows = parse_users(text, result)
    import_users(db, rows, result, settings)
    return result


IMPORTERS = {
    CsvType.USERS: _import_user_file,
}


def import_csv(db: Session, content: bytes, metadata: Optional[CsvMetadata], settings: Settings) -> CsvImportResult:
    if metadata is None or metadata.type is None:
        raise CsvImportError("Missing Metadata")
    if not content:
        raise CsvImportError("Empty file")

    importer = IMPORTERS.get(metadata.type)
    if importer is None:
        raise NotImplementedError(f"CSV import of type {metadata.type.value} is not supported")

    text = _decode(content)
    try:
        result = importer(db, text, settings)
    except Exception:
        db.rollback()
        raise

    result.success = result.failed == 0
    return result
