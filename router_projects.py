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

"""Project management, questionnaires and peer assessment answers."""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from database import get_db
from models import Project, QuestionnaireActivityStatus, Role, User
from router_auth import get_current_user, require_staff
from router_groups import group_members
from router_subjects import question_out
import answers
import crud_ops
import schemas

router = APIRouter(prefix="/api/project", tags=["projects"])


def project_summary(project: Project, model=schemas.ProjectSummary, **extra):
    course = project.course
    teacher = course.class_teacher
    return model(
        id=project.id,
        name=project.name,
        course_id=course.id,
        course_name=course.course_name,
        class_teacher_id=teacher.id if teacher else None,
        class_teacher_name=f"{teacher.first_name} {teacher.last_name}" if teacher else "No Class Teacher",
        group_count=len(project.groups),
        unassigned_students=crud_ops.unassigned_students_count(project),
        project_start=project.project_start,
        **extra,
    )


def _project_subjects(project: Project) -> List[schemas.ProjectSubject]:
    return [
        schemas.ProjectSubject(
            id=ps.id,
            subject_id=ps.subject_id,
            name=ps.subject.name,
            short_name=ps.subject.short_name,
            duration=ps.duration,
            is_learning_field=ps.subject.is_learning_field,
            performances=[schemas.Performance.model_validate(p) for p in sorted(ps.performances, key=lambda p: p.id)],
        )
        for ps in sorted(project.project_subjects, key=lambda ps: ps.id)
    ]


def _questions(project: Project) -> List[schemas.Question]:
    ordered = sorted(project.project_questions, key=lambda pq: pq.id)
    return [question_out(pq.question) for pq in ordered]


def _questionnaire_detail(project: Project, groups, activity_status) -> schemas.ProjectQuestionnaireDetail:
    return schemas.ProjectQuestionnaireDetail(
        id=project.id,
        name=project.name,
        activity_status=activity_status,
        questions=_questions(project),
        groups=[group_members(g) for g in sorted(groups, key=lambda g: g.id)],
    )


def _visible_projects(db: Session, user: User) -> List[Project]:
    if user.role == Role.ADMIN:
        return crud_ops.get_projects(db)
    courses = crud_ops.get_courses_for_user(db, user)
    return sorted((p for c in courses for p in c.projects), key=lambda p: (p.project_start, p.id))


# --- project management ---

@router.post("/create", response_model=schemas.ProjectSummary, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_staff)])
def create_project(req: schemas.ProjectCreate, db: Session = Depends(get_db)):
    project = crud_ops.create_project(db, crud_ops.sanitize(req.project_name), req.course_id, req.project_start)
    return project_summary(project)


@router.post("/create/full", response_model=schemas.ProjectCreated, dependencies=[Depends(require_staff)])
def create_project_full(req: schemas.ProjectCreateFull, db: Session = Depends(get_db)):
    project = crud_ops.create_project_full(db, req.project_name, req.course_id, req.project_start, req.groups)
    return schemas.ProjectCreated(id=project.id)


@router.get("/all", response_model=List[schemas.ProjectSummary], dependencies=[Depends(require_staff)])
def get_projects(db: Session = Depends(get_db)):
    return [project_summary(p) for p in crud_ops.get_projects(db)]


# --- questionnaires (any signed in user) ---

@router.get("/with-questions", response_model=List[schemas.ProjectWithQuestions])
def get_projects_with_questions(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return [
        schemas.ProjectWithQuestions(
            id=p.id,
            name=p.name,
            course_name=p.course.course_name,
            activity_status=p.activity_status,
            questions=_questions(p),
        )
        for p in _visible_projects(db, user)
        if p.project_questions
    ]


@router.get("/fragebogen", response_model=List[schemas.QuestionnaireCourse])
def get_questionnaires(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return [
        schemas.QuestionnaireCourse(
            id=c.id,
            course_name=c.course_name,
            projects=[
                schemas.QuestionnaireProject(id=p.id, name=p.name, question_count=len(p.project_questions))
                for p in sorted(c.projects, key=lambda p: (p.project_start, p.id))
            ],
        )
        for c in crud_ops.get_courses_for_user(db, user)
    ]


@router.get("/{project_id}/myGroup", response_model=schemas.ProjectQuestionnaireDetail)
def get_my_group(project_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    project = crud_ops.require_project(db, project_id)

    groups = [g for g in project.groups if user in g.users]
    if not groups:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User is not part of a group in this project")
    group = min(groups, key=lambda g: g.id)

    activity_status = project.activity_status
    # answering is over for whoever already submitted
    if activity_status == QuestionnaireActivityStatus.READY_FOR_ANSWERING \
            and answers.has_user_submitted(db, project, user):
        activity_status = QuestionnaireActivityStatus.ARCHIVED

    return _questionnaire_detail(project, [group], activity_status)


@router.post("/{project_id}/fragebogenAnswers")
def submit_answers(project_id: int, submission: schemas.QuestionnaireSubmission,
                   db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    project = crud_ops.require_project(db, project_id)
    saved = answers.answer_questions(db, project, user, submission)
    return {"message": "Answers saved successfully", "count": len(saved)}


# --- single project ---

@router.get("/{project_id}", response_model=schemas.ProjectDetail, dependencies=[Depends(require_staff)])
def get_project(project_id: int, db: Session = Depends(get_db)):
    project = crud_ops.require_project(db, project_id)
    return project_summary(
        project,
        model=schemas.ProjectDetail,
        groups=[group_members(g) for g in sorted(project.groups, key=lambda g: g.id)],
        subjects=_project_subjects(project),
    )


@router.patch("/{project_id}", dependencies=[Depends(require_staff)])
def update_project(project_id: int, req: schemas.ProjectUpdate, db: Session = Depends(get_db)):
    name = crud_ops.sanitize(req.project_name)
    crud_ops.update_project(db, project_id, name=name or None)


@router.put("/{project_id}/full", dependencies=[Depends(require_staff)])
def update_project_full(project_id: int, req: schemas.ProjectPutFull, db: Session = Depends(get_db)):
    crud_ops.update_project_full(db, project_id, req.project_name, req.project_start, req.groups)


@router.delete("/delete/{project_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_staff)])
def delete_project(project_id: int, db: Session = Depends(get_db)):
    if not crud_ops.delete_project(db, project_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Project not found: {project_id}")


@router.post("/{project_id}/add/subject", dependencies=[Depends(require_staff)])
def add_subject(project_id: int, req: schemas.AddSubjectToProject, db: Session = Depends(get_db)):
    crud_ops.add_subject_to_project(db, project_id, req.subject_id, req.duration)
    return {"message": "Subject added successfully"}


@router.post("/{project_id}/remove/subject/{subject_id}", dependencies=[Depends(require_staff)])
def remove_subject(project_id: int, subject_id: int, db: Session = Depends(get_db)):
    crud_ops.remove_subject_from_project(db, project_id, subject_id)
    return {"message": "Subject removed successfully"}


@router.put("/{project_id}/fragebogen", dependencies=[Depends(require_staff)])
def put_questionnaire(project_id: int, req: schemas.QuestionnairePut, db: Session = Depends(get_db)):
    project = crud_ops.require_project(db, project_id)
    crud_ops.update_questionnaire(db, project, req.questions, req.status)


@router.get("/{project_id}/groups", response_model=schemas.ProjectQuestionnaireDetail,
            dependencies=[Depends(require_staff)])
def get_groups(project_id: int, db: Session = Depends(get_db)):
    project = crud_ops.require_project(db, project_id)
    return _questionnaire_detail(project, project.groups, project.activity_status)


@router.get("/{project_id}/answers/group/{group_id}", response_model=List[schemas.DetailedQuestionAnswers],
            dependencies=[Depends(require_staff)])
def get_group_answers(project_id: int, group_id: int, db: Session = Depends(get_db)):
    project = crud_ops.require_project(db, project_id)
    group = crud_ops.require_group(db, group_id)
    if group.project_id != project.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group is not part of the project")
    return answers.detailed_answers_for_group(db, project, group)


@router.get("/{project_id}/answers/averages", response_model=List[schemas.StudentGradeAverage],
            dependencies=[Depends(require_staff)])
def get_grade_averages(project_id: int, db: Session = Depends(get_db)):
    project = crud_ops.require_project(db, project_id)
    return answers.grade_averages_for_project(db, project)
