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


from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from database import get_db
from models import User
from router_auth import get_current_user, require_staff
import crud_ops
import grade_overview
import schemas

router = APIRouter(prefix="/api/grade", tags=["grades"])
performance_router = APIRouter(prefix="/api/performance", tags=["performances"],
                               dependencies=[Depends(require_staff)])
project_subject_router = APIRouter(prefix="/api/projectSubject", tags=["project subjects"],
                                   dependencies=[Depends(require_staff)])


@router.get("/overview", response_model=schemas.GradeOverview, dependencies=[Depends(require_staff)])
def get_grade_overview(project_id: int = Query(alias="projectId"),
                       group_id: Optional[int] = Query(default=None, alias="groupId"),
                       db: Session = Depends(get_db)):
    return grade_overview.load_grade_overview(db, project_id, group_id)


@router.post("/save")
def save_grade_overview(requests: List[schemas.UpdateGradeRequest], db: Session = Depends(get_db),
                        teacher: User = Depends(require_staff)):
    saved = grade_overview.save_grade_overview(db, requests, teacher)
    return {"message": "Grades saved successfully", "count": saved}


@router.post("/calculateSubjectGrade", response_model=Decimal, dependencies=[Depends(get_current_user)])
def calculate_subject_grade(entries: List[schemas.SubjectGradeEntry]):
    return grade_overview.calculate_subject_grade(entries)


@router.get("/options", response_model=List[schemas.CourseSelection])
def get_grade_options(db: Session = Depends(get_db), user: User = Depends(require_staff)):
    return grade_overview.grade_overview_options(db, user)


@performance_router.post("/save")
def save_performance(req: schemas.PerformanceCreate, db: Session = Depends(get_db)):
    crud_ops.create_performance(db, crud_ops.sanitize(req.name), crud_ops.sanitize(req.short_name),
                                req.weight, req.project_subject_id)
    return {"message": "Performance saved successfully"}


@performance_router.put("/edit")
def edit_performance(req: schemas.PerformanceEdit, db: Session = Depends(get_db)):
    crud_ops.update_performance(db, req.id, crud_ops.sanitize(req.name), crud_ops.sanitize(req.short_name),
                                req.weight)
    return {"message": "Performance edited successfully"}


@performance_router.delete("/remove/{performance_id}")
def remove_performance(performance_id: int, db: Session = Depends(get_db)):
    crud_ops.delete_performance(db, performance_id)
    return {"message": "Performance removed successfully"}


@project_subject_router.put("/edit")
def edit_project_subject(req: schemas.ProjectSubjectEdit, db: Session = Depends(get_db)):
    crud_ops.update_project_subject(db, req.id, req.duration, crud_ops.sanitize(req.short_name),
                                    req.is_learning_field)
    return {"message": "Project_Subject edited successfully"}


@project_subject_router.delete("/remove/{project_subject_id}")
def remove_project_subject(project_subject_id: int, db: Session = Depends(get_db)):
    crud_ops.delete_project_subject(db, project_subject_id)
    return {"message": "Project_Subject removed successfully"}
