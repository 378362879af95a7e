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
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from database import get_db
from router_auth import require_staff
import crud_ops
import schemas

# "Klassen" are the school classes, stored as courses
router = APIRouter(prefix="/api/klassen", tags=["courses"], dependencies=[Depends(require_staff)])


def _check_teacher(db: Session, teacher_id: int):
    if not crud_ops.get_user(db, teacher_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Teacher not found: {teacher_id}")


@router.post("", response_model=schemas.Course, status_code=status.HTTP_201_CREATED)
def create_course(course: schemas.CourseCreate, db: Session = Depends(get_db)):
    _check_teacher(db, course.teacher_id)
    return crud_ops.create_course(db, crud_ops.sanitize(course.course_name), course.teacher_id)


@router.get("", response_model=List[schemas.Course])
def get_courses(db: Session = Depends(get_db)):
    return crud_ops.get_courses(db)


@router.get("/all/bare", response_model=List[schemas.CourseBare])
def get_courses_bare(db: Session = Depends(get_db)):
    return [
        schemas.CourseBare(
            id=c.id,
            course_name=c.course_name,
            class_teacher_name=f"{c.class_teacher.first_name} {c.class_teacher.last_name}",
        )
        for c in crud_ops.get_courses(db)
    ]


@router.put("/{course_id}", response_model=schemas.Course)
def update_course(course_id: int, course: schemas.CourseUpdate, db: Session = Depends(get_db)):
    _check_teacher(db, course.teacher_id)
    return crud_ops.update_course(db, course_id, crud_ops.sanitize(course.course_name), course.teacher_id)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(course_id: int, db: Session = Depends(get_db)):
    crud_ops.delete_course(db, course_id)


@router.get("/{course_id}/students", response_model=List[schemas.Student])
def get_students(course_id: int, db: Session = Depends(get_db)):
    course = crud_ops.require_course(db, course_id)
    return crud_ops.get_course_students(course)
