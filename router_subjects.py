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
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from database import get_db
from models import Question
from router_auth import require_staff
import crud_ops
import schemas

router = APIRouter(prefix="/api/subject", tags=["subjects"], dependencies=[Depends(require_staff)])
question_router = APIRouter(prefix="/api/question", tags=["questions"], dependencies=[Depends(require_staff)])


def question_out(question: Question) -> schemas.Question:
    return schemas.Question(
        id=question.id,
        text=question.text,
        type=question.type,
        subject_ids=sorted(s.id for s in question.subjects),
    )


def _clean_subject(subject: schemas.SubjectCreate) -> dict:
    return {
        "name": crud_ops.sanitize(subject.name),
        "short_name": crud_ops.sanitize(subject.short_name),
        "description": crud_ops.sanitize(subject.description),
        "is_learning_field": subject.is_learning_field,
    }


@router.get("/findAll", response_model=List[schemas.Subject])
def find_all_subjects(db: Session = Depends(get_db)):
    return crud_ops.get_subjects(db)


@router.post("", response_model=schemas.Subject, status_code=status.HTTP_201_CREATED)
def create_subject(subject: schemas.SubjectCreate, db: Session = Depends(get_db)):
    return crud_ops.create_subject(db, **_clean_subject(subject))


@router.get("/{subject_id}", response_model=schemas.Subject)
def get_subject(subject_id: int, db: Session = Depends(get_db)):
    return crud_ops.require_subject(db, subject_id)


@router.put("/{subject_id}", response_model=schemas.Subject)
def update_subject(subject_id: int, subject: schemas.SubjectCreate, db: Session = Depends(get_db)):
    return crud_ops.update_subject(db, subject_id, **_clean_subject(subject))


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subject(subject_id: int, db: Session = Depends(get_db)):
    crud_ops.delete_subject(db, subject_id)


@question_router.post("", response_model=schemas.Question)
def create_question(question: schemas.QuestionCreate, db: Session = Depends(get_db)):
    created = crud_ops.create_question(db, crud_ops.sanitize(question.text), question.type, question.subject_ids)
    return question_out(created)


@question_router.get("/findAll", response_model=List[schemas.Question])
def find_all_questions(db: Session = Depends(get_db)):
    return [question_out(q) for q in crud_ops.get_questions(db)]
