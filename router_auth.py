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
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from database import get_db
from models import Role, User
from schemas import LoginRequest, User as UserSchema
from crud_ops import get_user, get_user_by_username, verify_password
import bleach

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["auth"])


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user = get_user(db, user_id)
    if not user:
        # account was deleted while the session was alive
        request.session.clear()
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    return user


def require_roles(*roles: Role):
    """Dependency factory allowing only the given roles."""
    def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user
    return checker


require_admin = require_roles(Role.ADMIN)
require_staff = require_roles(Role.ADMIN, Role.TEACHER)


@router.post("/login", response_model=UserSchema)
def login(credentials: LoginRequest, request: Request, db: Session = Depends(get_db)):
    username = bleach.clean(credentials.username).strip()

    user = get_user_by_username(db, username)
    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.info("Failed login for '%s'", username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    request.session.clear()
    request.session["user_id"] = user.id
    return user


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(request: Request):
    request.session.clear()


@router.get("/me", response_model=UserSchema)
def me(user: User = Depends(get_current_user)):
    return user
