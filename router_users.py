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
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from config import Settings, get_settings
from database import get_db
from models import Role
from router_auth import require_admin
import crud_ops
import pdf_service
import schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"], dependencies=[Depends(require_admin)])


@router.post("", response_model=schemas.User, status_code=status.HTTP_201_CREATED)
def create_user(user: schemas.UserCreate, db: Session = Depends(get_db),
                settings: Settings = Depends(get_settings)):
    created = crud_ops.create_user(
        db,
        crud_ops.sanitize(user.username),
        user.password,
        user.role,
        crud_ops.sanitize(user.first_name),
        crud_ops.sanitize(user.last_name),
    )

    entry = pdf_service.CredentialEntry(created.username, user.password, created.first_name, created.last_name)
    try:
        pdf_service.generate_user_credentials_pdf(entry, settings.pdf_output_dir)
    except Exception:
        logger.exception("Failed to generate credentials PDF for %s", created.username)

    return created


@router.get("", response_model=List[schemas.User])
def get_users(role: Optional[Role] = None, db: Session = Depends(get_db)):
    if role is not None:
        return crud_ops.get_users_by_role(db, role)
    return crud_ops.get_users(db)


@router.get("/count", response_model=int)
def count_users(db: Session = Depends(get_db)):
    return crud_ops.count_users(db)


@router.get("/{user_id}", response_model=schemas.User)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return crud_ops.require_user(db, user_id)


@router.get("/{user_id}/exists", response_model=bool)
def user_exists(user_id: int, db: Session = Depends(get_db)):
    return crud_ops.get_user(db, user_id) is not None


@router.put("/{user_id}", response_model=schemas.User)
def update_user(user_id: int, user: schemas.UserUpdate, db: Session = Depends(get_db)):
    return crud_ops.update_user(
        db,
        user_id,
        crud_ops.sanitize(user.username),
        crud_ops.sanitize(user.first_name),
        crud_ops.sanitize(user.last_name),
        user.role,
        user.password,
    )


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: int, db: Session = Depends(get_db)):
    crud_ops.delete_user(db, user_id)
