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
from typing import List
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import FileResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from config import Settings, get_settings
from database import get_db
from router_auth import require_admin
import csv_import
import pdf_service
import schemas

logger = logging.getLogger(__name__)

CSV_CONTENT_TYPES = ("text/csv", "application/vnd.ms-excel")

csv_router = APIRouter(prefix="/api/csv", tags=["csv"], dependencies=[Depends(require_admin)])
pdf_router = APIRouter(prefix="/api/pdfs", tags=["pdfs"], dependencies=[Depends(require_admin)])


@csv_router.post("/upload", response_model=schemas.CsvImportResult)
async def upload_csv(file: UploadFile = File(...), metadata: str = Form(None),
                     db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    if file.content_type not in CSV_CONTENT_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid CSV file")

    parsed = None
    if metadata:
        try:
            parsed = schemas.CsvMetadata.model_validate_json(metadata)
        except ValidationError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid metadata")

    content = await file.read()
    result = csv_import.import_csv(db, content, parsed, settings)
    logger.info("CSV %s processed: %s created, %s failed", file.filename, result.processed, result.failed)
    return result


@pdf_router.get("", response_model=List[schemas.PdfFile])
def list_pdfs(settings: Settings = Depends(get_settings)):
    return pdf_service.list_pdf_files(settings.pdf_output_dir)


@pdf_router.get("/download/{filename:path}")
def download_pdf(filename: str, settings: Settings = Depends(get_settings)):
    try:
        path = pdf_service.resolve_pdf_file(settings.pdf_output_dir, filename)
    except FileNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    safe_name = pdf_service.sanitize_filename(path.name)
    return FileResponse(
        path,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{safe_name}"'},
    )
