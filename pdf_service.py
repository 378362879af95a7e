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

"""Credential documents for newly created accounts and access to stored PDFs."""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Sequence
from xml.sax.saxutils import escape
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)

USERS_PER_PAGE = 3
MARGIN = 36
CONTENT_WIDTH = A4[0] - 2 * MARGIN


class CredentialEntry(NamedTuple):
    username: str
    password: str
    first_name: str
    last_name: str
    courses: Sequence[str] = ()


def _timestamp() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def _file_safe(value: str) -> str:
    # keeps word characters, dots and dashes; no separators survive
    return re.sub(r"[^\w.\-]", "_", value).strip(".") or "user"


def _unique_path(directory: Path, stem: str) -> Path:
    path = directory / f"{stem}.pdf"
    counter = 1
    while path.exists():
        path = directory / f"{stem}_{counter}.pdf"
        counter += 1

    if path.resolve().parent != directory.resolve():
        raise PermissionError(f"Refusing to write outside PDF directory: {path}")
    return path


def _styles() -> Dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(name="CredentialsTitle", parent=base["Title"], fontName="Helvetica-Bold",
                                fontSize=22, alignment=TA_CENTER, spaceAfter=10),
        "date": ParagraphStyle(name="CredentialsDate", parent=base["Normal"], fontSize=10,
                               alignment=TA_CENTER, spaceAfter=20),
        "count": ParagraphStyle(name="CredentialsCount", parent=base["Normal"], fontName="Helvetica-Bold",
                                fontSize=12, alignment=TA_CENTER, spaceAfter=24),
        "user": ParagraphStyle(name="CredentialsUser", parent=base["Heading2"], fontName="Helvetica-Bold",
                               fontSize=16, spaceBefore=10, spaceAfter=10),
        "label": ParagraphStyle(name="CredentialsLabel", parent=base["Normal"], fontName="Helvetica-Bold",
                                fontSize=12, leading=14),
        "value": ParagraphStyle(name="CredentialsValue", parent=base["Normal"], fontSize=12, leading=14),
    }


def _courses_row(courses: Sequence[str]):
    if len(courses) == 1:
        return "Course:", courses[0]
    if len(courses) > 1:
        return "Courses:", ", ".join(courses)
    return "Courses:", "None"


def _credentials_table(entry: CredentialEntry, styles) -> Table:
    rows = [
        ("Username:", entry.username),
        ("Password:", entry.password),
        ("First Name:", entry.first_name),
        ("Last Name:", entry.last_name),
        _courses_row(list(entry.courses)),
    ]
    data = [
        [Paragraph(escape(label), styles["label"]),
         Paragraph(escape(value if value else "N/A"), styles["value"])]
        for label, value in rows
    ]
    table = Table(data, colWidths=[CONTENT_WIDTH * 0.3, CONTENT_WIDTH * 0.7], hAlign="LEFT")
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (0, -1), colors.Color(240 / 255, 240 / 255, 240 / 255)),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LEFTPADDING", (0, 0), (-1, -1), 8),
        ("RIGHTPADDING", (0, 0), (-1, -1), 8),
        ("TOPPADDING", (0, 0), (-1, -1), 8),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
    ]))
    return table


def _build(path: Path, elements: List[Any]):
    path.parent.mkdir(parents=True, exist_ok=True)
    doc = SimpleDocTemplate(str(path), pagesize=A4, leftMargin=MARGIN, rightMargin=MARGIN, topMargin=MARGIN, bottomMargin=MARGIN,
                            title=path.stem)
    doc.build(elements)


def generate_user_credentials_pdf(entry: CredentialEntry, output_dir) -> Path:
    """Render a single user's credentials into ``output_dir``."""
    directory = Path(output_dir)
    path = _unique_path(directory, f"user_credentials_{_file_safe(entry.username)}_{_timestamp()}")
    styles = _styles()

    elements = [
        Paragraph("GradeSave - User Credentials", styles["title"]),
        Paragraph("Created: " + datetime.now().strftime("%d.%m.%Y %H:%M:%S"), styles["date"]),
        _credentials_table(entry, styles),
    ]
    _build(path, elements)

    logger.info("PDF generated successfully: %s", path)
    return path


def generate_bulk_user_credentials_pdf(entries: Sequence[CredentialEntry], output_dir) -> Optional[Path]:
    """Render the credentials of several users into one document.

    Three users are placed on each page. Returns the path of the new file, or
    ``None`` when there is nothing to render.
    """
    if not entries:
        return None

    directory = Path(output_dir)
    path = _unique_path(directory, f"bulk_user_credentials_{_timestamp()}")
    styles = _styles()
    total = len(entries)

    elements: List[Any] = [
        Paragraph("GradeSave - Bulk User Credentials", styles["title"]),
        Paragraph("Created: " + datetime.now().strftime("%d.%m.%Y %H:%M:%S"), styles["date"]),
        Paragraph(f"Total Users: {total}", styles["count"]),
    ]

    for index, entry in enumerate(entries, start=1):
        elements.append(Paragraph(f"User {index} of {total}", styles["user"]))
        elements.append(_credentials_table(entry, styles))
        elements.append(Spacer(1, 12))
        if index % USERS_PER_PAGE == 0 and index < total:
            elements.append(PageBreak())

    _build(path, elements)

    logger.info("Bulk PDF generated successfully: %s", path)
    return path


def list_pdf_files(output_dir) -> List[Dict[str, Any]]:
    directory = Path(output_dir).resolve()
    if not directory.exists():
        logger.warning("PDF directory does not exist: %s", directory)
        return []

    files = []
    for entry in sorted(directory.glob("*.pdf")):
        stat = entry.stat()
        files.append({
            "name": entry.name,
            "size": stat.st_size,
            "last_modified": int(stat.st_mtime * 1000),
        })

    logger.info("Found %s PDF files", len(files))
    return files


def resolve_pdf_file(output_dir, filename: str) -> Path:
    """Return the path of a stored PDF.

    Raises PermissionError when ``filename`` points outside ``output_dir`` and
    FileNotFoundError when the file is missing.
    """
    directory = Path(output_dir).resolve()
    path = (directory / filename).resolve()

    if path != directory and directory not in path.parents:
        logger.warning("Attempted to access file outside PDF directory: %s", filename)
        raise PermissionError("Access denied: File is outside PDF directory")

    if not path.is_file():
        logger.warning("PDF file not found or not readable: %s", filename)
        raise FileNotFoundError(f"File not found or not readable: {filename}")

    return path


def sanitize_filename(filename: str) -> str:
    if filename is None:
        return "download.pdf"

    sanitized = filename
    for char in ("\\", '"', "\n", "\r", ";"):
        sanitized = sanitized.replace(char, "")
    sanitized = sanitized.strip()

    return sanitized or "download.pdf"
