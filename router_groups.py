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


from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
from models import Group
from router_auth import require_staff
import crud_ops
import schemas

router = APIRouter(prefix="/api/group", tags=["groups"], dependencies=[Depends(require_staff)])


def group_members(group: Group) -> schemas.GroupMembers:
    return schemas.GroupMembers(
        id=group.id,
        name=group.name,
        members=[schemas.Student.model_validate(u) for u in crud_ops.sort_users(group.users)],
    )


@router.post("/create", response_model=schemas.GroupMembers)
def create_group(req: schemas.GroupCreate, db: Session = Depends(get_db)):
    project = crud_ops.require_project(db, req.project_id)
    group = crud_ops.create_group(db, crud_ops.sanitize(req.group_name), project)
    return group_members(group)


@router.post("/add", response_model=schemas.GroupMembers)
def add_student(req: schemas.GroupMemberChange, db: Session = Depends(get_db)):
    return group_members(crud_ops.add_user_to_group(db, req.group_id, req.student_id))


@router.post("/remove", response_model=schemas.GroupMembers)
def remove_student(req: schemas.GroupMemberChange, db: Session = Depends(get_db)):
    return group_members(crud_ops.remove_user_from_group(db, req.group_id, req.student_id))


@router.post("/create/fromClass", response_model=List[schemas.GroupMembers])
def create_groups_from_class(req: schemas.GroupsFromCourse, db: Session = Depends(get_db)):
    groups = crud_ops.create_groups_from_course(db, req.course_id, req.project_id, req.group_amount)
    return [group_members(g) for g in groups]


@router.delete("/{group_id}")
def delete_group(group_id: int, db: Session = Depends(get_db)):
    crud_ops.delete_group(db, group_id)
