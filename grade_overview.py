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

"""Grade overview: the student x performance matrix used for bulk grade entry."""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
from sqlalchemy.orm import Session
import crud_ops
import schemas
from models import Grade, Role, User

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def _subject_columns(db: Session, project_id: int):
    subjects = []
    columns = []
    for project_subject in crud_ops.get_project_subjects(db, project_id):
        performances = crud_ops.get_performances_for_project_subject(db, project_subject.id)
        columns.extend(performances)
        subjects.append(schemas.SubjectOverview(
            project_subject_id=project_subject.id,
            name=project_subject.subject.name,
            short_name=project_subject.subject.short_name,
            duration=project_subject.duration,
            is_learning_field=project_subject.subject.is_learning_field,
            performances=[
                schemas.Performance(id=p.id, name=p.name, short_name=p.short_name, weight=p.weight * 100)
                for p in performances
            ],
        ))
    return subjects, columns


def _group_name(user: User, project_id: int) -> str:
    for group in sorted(user.groups, key=lambda g: g.id):
        if group.project_id == project_id:
            return group.name
    return ""


def load_grade_overview(db: Session, project_id: int, group_id: Optional[int] = None) -> schemas.GradeOverview:
    """Build the grade matrix of a project, optionally limited to one group.

    Every student row holds one cell per performance of the project, in column
    order. Cells without a stored grade carry ``None`` for both the grade id and
    the value.
    """
    crud_ops.require_project(db, project_id)
    if group_id is not None:
        group = crud_ops.require_group(db, group_id)
        if group.project_id != project_id:
            raise crud_ops.NotFoundError(f"Group {group_id} is not part of project {project_id}")

    subjects, columns = _subject_columns(db, project_id)

    if group_id is not None:
        students = crud_ops.get_students_in_group(db, group_id)
    else:
        students = crud_ops.get_students_in_project_course(db, project_id)

    grades_by_cell = {
        (grade.student_id, grade.performance_id): grade
        for grade in crud_ops.get_grades_for_project(db, project_id)
    }

    rows = []
    for student in crud_ops.sort_users(students):
        cells = []
        for performance in columns:
            grade = grades_by_cell.get((student.id, performance.id))
            cells.append(schemas.GradeCell(
                grade_id=grade.id if grade else None,
                performance_id=performance.id,
                grade=grade.value if grade else None,
            ))
        rows.append(schemas.StudentGradeRow(
            student_id=student.id,
            first_name=student.first_name,
            last_name=student.last_name,
            group_name=_group_name(student, project_id),
            grades=cells,
        ))

    return schemas.GradeOverview(subjects=subjects, students=rows)


def save_grade_overview(db: Session, requests: List[schemas.UpdateGradeRequest], teacher: User) -> int:
    """Create or overwrite grades for a batch of edited cells.

    Rows without a student and cells without a performance or grade are skipped.
    An unknown student or performance id aborts the whole batch and nothing is
    written. Returns the number of cells stored.
    """
    saved = 0
    try:
        for request in requests:
            if request.student_id is None:
                continue

            for cell in request.grades:
                if cell.performance_id is None or cell.grade is None:
                    continue
                crud_ops.check_grade_value(cell.grade)

                grade = crud_ops.get_grade_for_student_and_performance(db, request.student_id, cell.performance_id)
                if grade is None:
                    performance = crud_ops.require_performance(db, cell.performance_id)
                    student = crud_ops.require_user(db, request.student_id)
                    grade = Grade(performance=performance, student=student, teacher=teacher,
                                  weight=performance.weight)
                    db.add(grade)

                grade.value = cell.grade
                db.flush()
                saved += 1

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Saved %s grades", saved)
    return saved


def calculate_subject_grade(entries: List[schemas.SubjectGradeEntry]) -> Decimal:
    """Weighted mean of grades, weights given in percent."""
    total = Decimal(0)
    total_weight = Decimal(0)

    for entry in entries:
        weight = (Decimal(str(entry.weight)) / 100).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
        total += Decimal(entry.grade) * weight
        total_weight += weight

    if total_weight == 0:
        return Decimal(0)

    return (total / total_weight).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def can_edit_grades(user: User, project) -> bool:
    if user.role == Role.ADMIN:
        return True
    return user.role == Role.TEACHER and project.course.class_teacher_id == user.id


def grade_overview_options(db: Session, user: User) -> List[schemas.CourseSelection]:
    """Courses, projects and groups the user may open in the grade overview."""
    if user.role == Role.ADMIN:
        courses = crud_ops.get_courses(db)
    else:
        courses = crud_ops.get_courses_for_user(db, user)

    options = []
    for course in courses:
        projects = []
        for project in sorted(course.projects, key=lambda p: (p.project_start, p.id)):
            projects.append(schemas.ProjectSelection(
                id=project.id,
                name=project.name,
                project_start=project.project_start,
                groups=[schemas.GroupSelection(id=g.id, name=g.name)
                        for g in crud_ops.get_groups_for_project(db, project.id)],
                can_edit=can_edit_grades(user, project),
            ))
        options.append(schemas.CourseSelection(id=course.id, course_name=course.course_name, projects=projects))
    return options
