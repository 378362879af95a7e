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

"""Peer assessment questionnaires: submission and evaluation of answers."""

import enum
import logging
from collections import defaultdict
from numbers import Number
from typing import List
from sqlalchemy.orm import Session
import crud_ops
import schemas
from models import Answer, Group, Project, QuestionType, User

logger = logging.getLogger(__name__)

# grade answers may be left open in the questionnaire
NO_GRADE_SELECTED = 255


class RejectReason(str, enum.Enum):
    ALREADY_SUBMITTED = "ALREADY_SUBMITTED"
    NOT_IN_GROUP = "NOT_IN_GROUP"
    QUESTION_COUNT_MISMATCH = "QUESTION_COUNT_MISMATCH"
    UNKNOWN_QUESTION = "UNKNOWN_QUESTION"
    QUESTION_NOT_IN_PROJECT = "QUESTION_NOT_IN_PROJECT"
    UNKNOWN_RECIPIENT = "UNKNOWN_RECIPIENT"
    ANSWER_TYPE_MISMATCH = "ANSWER_TYPE_MISMATCH"


class SubmissionRejected(Exception):
    def __init__(self, reason: RejectReason, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


def has_user_submitted(db: Session, project: Project, user: User) -> bool:
    return len(crud_ops.get_answers_by_author_and_project(db, user.id, project.id)) > 0


def _is_number(value) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def answer_questions(db: Session, project: Project, user: User,
                     submission: schemas.QuestionnaireSubmission) -> List[Answer]:
    """Validate and store one user's questionnaire for a project.

    The whole submission is checked before anything is written. Any problem
    raises SubmissionRejected and leaves the database untouched.
    """
    if has_user_submitted(db, project, user):
        raise SubmissionRejected(RejectReason.ALREADY_SUBMITTED, "Questionnaire already submitted")

    if not any(user in group.users for group in project.groups):
        raise SubmissionRejected(RejectReason.NOT_IN_GROUP, "User is not part of a group in this project")

    project_questions = {pq.question_id: pq for pq in project.project_questions}
    if len(submission.questions) != len(project_questions):
        raise SubmissionRejected(
            RejectReason.QUESTION_COUNT_MISMATCH,
            f"Expected answers for {len(project_questions)} questions, got {len(submission.questions)}",
        )
    submitted_ids = [item.question_id for item in submission.questions]
    if len(set(submitted_ids)) != len(submitted_ids):
        raise SubmissionRejected(RejectReason.QUESTION_COUNT_MISMATCH, "Each question must be answered exactly once")

    answers = []
    for item in submission.questions:
        question = crud_ops.get_question(db, item.question_id)
        if question is None:
            raise SubmissionRejected(RejectReason.UNKNOWN_QUESTION, f"Question not found: {item.question_id}")

        project_question = project_questions.get(question.id)
        if project_question is None:
            raise SubmissionRejected(RejectReason.QUESTION_NOT_IN_PROJECT,
                                     f"Question {question.id} is not part of the project")

        for student_answer in item.answers:
            recipient = crud_ops.get_user(db, student_answer.student_id)
            if recipient is None:
                raise SubmissionRejected(RejectReason.UNKNOWN_RECIPIENT,
                                         f"User not found: {student_answer.student_id}")

            value = student_answer.answer
            answer = Answer(author_id=user.id, recipient_id=recipient.id, project_question_id=project_question.id)
            if question.type == QuestionType.GRADE:
                if not _is_number(value):
                    raise SubmissionRejected(RejectReason.ANSWER_TYPE_MISMATCH,
                                             f"Question {question.id} expects a grade")
                answer.answer_grade = int(value)
            else:
                if not isinstance(value, str):
                    raise SubmissionRejected(RejectReason.ANSWER_TYPE_MISMATCH,
                                             f"Question {question.id} expects a text")
                answer.answer_text = crud_ops.sanitize(value)
            answers.append(answer)

    db.add_all(answers)
    db.commit()
    logger.info("User %s submitted %s answers for project %s", user.id, len(answers), project.id)
    return answers


def _answer_value(answer: Answer):
    return answer.answer_grade if answer.answer_grade is not None else answer.answer_text


def detailed_answers_for_group(db: Session, project: Project, group: Group) -> List[schemas.DetailedQuestionAnswers]:
    member_ids = {u.id for u in group.users}

    by_question = defaultdict(list)
    for answer in crud_ops.get_answers_for_project(db, project.id):
        if answer.author_id in member_ids and answer.recipient_id in member_ids:
            by_question[answer.project_question.question_id].append(answer)

    return [
        schemas.DetailedQuestionAnswers(
            question_id=question_id,
            answers=[
                schemas.DetailedStudentAnswer(author_id=a.author_id, recipient_id=a.recipient_id,
                                              answer=_answer_value(a))
                for a in answers
            ],
        )
        for question_id, answers in sorted(by_question.items())
    ]


def _mean(values):
    return sum(values) / len(values) if values else None


def grade_averages_for_project(db: Session, project: Project) -> List[schemas.StudentGradeAverage]:
    """Average grade answers per recipient, split into self and peer assessment."""
    by_recipient = defaultdict(list)
    for answer in crud_ops.get_answers_for_project(db, project.id):
        if answer.project_question.question.type != QuestionType.GRADE:
            continue
        if answer.answer_grade is None or answer.answer_grade == NO_GRADE_SELECTED:
            continue
        by_recipient[answer.recipient_id].append(answer)

    averages = []
    for recipient_id, answers in sorted(by_recipient.items()):
        recipient = answers[0].recipient
        grades = [a.answer_grade for a in answers]
        own = [a.answer_grade for a in answers if a.author_id == a.recipient_id]
        peers = [a.answer_grade for a in answers if a.author_id != a.recipient_id]
        averages.append(schemas.StudentGradeAverage(
            student_id=recipient_id,
            student_name=f"{recipient.first_name} {recipient.last_name}",
            average_grade=_mean(grades),
            grade_count=len(grades),
            self_assessment=_mean(own),
            peer_assessment=_mean(peers),
        ))
    return averages
