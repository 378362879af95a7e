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

from types import SimpleNamespace

import pytest

import answers
import crud_ops
from answers import RejectReason, SubmissionRejected
from models import Answer, QuestionType, QuestionnaireActivityStatus
from schemas import QuestionnaireQuestion, QuestionnaireSubmission


@pytest.fixture
def questionnaire(db, school):
    crud_ops.update_questionnaire(db, school.project, [
        QuestionnaireQuestion(text="How reliable was the team member?", type=QuestionType.GRADE),
        QuestionnaireQuestion(text="What should improve?", type=QuestionType.TEXT),
    ], QuestionnaireActivityStatus.READY_FOR_ANSWERING)

    by_type = {pq.question.type: pq.question_id for pq in school.project.project_questions}
    return SimpleNamespace(school=school, grade_id=by_type[QuestionType.GRADE], text_id=by_type[QuestionType.TEXT])


def _submission(q, grades, texts):
    return QuestionnaireSubmission.model_validate({"questions": [
        {"question_id": q.grade_id, "answers": [{"student_id": s, "answer": a} for s, a in grades]},
        {"question_id": q.text_id, "answers": [{"student_id": s, "answer": a} for s, a in texts]},
    ]})


def _rejection(db, project, user, submission):
    with pytest.raises(SubmissionRejected) as info:
        answers.answer_questions(db, project, user, submission)
    return info.value.reason


def test_submission_is_stored(db, questionnaire):
    q, school = questionnaire, questionnaire.school
    adams, zeta = school.adams, school.zeta

    saved = answers.answer_questions(db, school.project, adams, _submission(
        q, [(adams.id, 2), (zeta.id, 1)], [(adams.id, "<script>alert(1)</script>"), (zeta.id, "Nothing")]))

    assert len(saved) == 4
    assert answers.has_user_submitted(db, school.project, adams)
    assert not answers.has_user_submitted(db, school.project, zeta)
    texts = {a.answer_text for a in db.query(Answer).all() if a.answer_text}
    assert "Nothing" in texts
    assert not any("<script>" in t for t in texts)
    grades = sorted(a.answer_grade for a in db.query(Answer).all() if a.answer_grade is not None)
    assert grades == [1, 2]


def test_second_submission_is_rejected(db, questionnaire):
    q, school = questionnaire, questionnaire.school
    submission = _submission(q, [(school.adams.id, 2)], [(school.adams.id, "ok")])
    answers.answer_questions(db, school.project, school.adams, submission)

    assert _rejection(db, school.project, school.adams, submission) == RejectReason.ALREADY_SUBMITTED
    assert db.query(Answer).count() == 2


def test_user_outside_groups_is_rejected(db, questionnaire):
    q, school = questionnaire, questionnaire.school
    submission = _submission(q, [(school.adams.id, 2)], [(school.adams.id, "ok")])
    assert _rejection(db, school.project, school.mueller, submission) == RejectReason.NOT_IN_GROUP


def test_question_count_must_match(db, questionnaire):
    q, school = questionnaire, questionnaire.school
    submission = QuestionnaireSubmission.model_validate({"questions": [
        {"question_id": q.grade_id, "answers": [{"student_id": school.adams.id, "answer": 2}]},
    ]})
    assert _rejection(db, school.project, school.adams, submission) == RejectReason.QUESTION_COUNT_MISMATCH


def test_unknown_and_foreign_questions(db, questionnaire):
    q, school = questionnaire, questionnaire.school

    unknown = _submission(SimpleNamespace(grade_id=9999, text_id=q.text_id), [], [])
    assert _rejection(db, school.project, school.adams, unknown) == RejectReason.UNKNOWN_QUESTION

    other = crud_ops.create_question(db, "Unrelated", QuestionType.GRADE)
    foreign = _submission(SimpleNamespace(grade_id=other.id, text_id=q.text_id), [], [])
    assert _rejection(db, school.project, school.adams, foreign) == RejectReason.QUESTION_NOT_IN_PROJECT


def test_unknown_recipient(db, questionnaire):
    q, school = questionnaire, questionnaire.school
    submission = _submission(q, [(9999, 2)], [])
    assert _rejection(db, school.project, school.adams, submission) == RejectReason.UNKNOWN_RECIPIENT


@pytest.mark.parametrize("grade_answer, text_answer", [
    ("2", "fine"),
    (True, "fine"),
    (2, 3),
])
def test_answer_type_mismatch_writes_nothing(db, questionnaire, grade_answer, text_answer):
    q, school = questionnaire, questionnaire.school
    submission = _submission(q, [(school.zeta.id, grade_answer)], [(school.zeta.id, text_answer)])

    assert _rejection(db, school.project, school.adams, submission) == RejectReason.ANSWER_TYPE_MISMATCH
    assert db.query(Answer).count() == 0


def test_averages_split_self_and_peer(db, questionnaire):
    q, school = questionnaire, questionnaire.school
    adams, zeta = school.adams, school.zeta

    answers.answer_questions(db, school.project, adams, _submission(
        q, [(adams.id, 2), (zeta.id, 4)], [(zeta.id, "good")]))
    answers.answer_questions(db, school.project, zeta, _submission(
        q, [(adams.id, 3), (zeta.id, answers.NO_GRADE_SELECTED)], [(adams.id, "great")]))

    averages = {a.student_id: a for a in answers.grade_averages_for_project(db, school.project)}

    assert averages[adams.id].average_grade == 2.5
    assert averages[adams.id].grade_count == 2
    assert averages[adams.id].self_assessment == 2
    assert averages[adams.id].peer_assessment == 3
    assert averages[zeta.id].grade_count == 1
    assert averages[zeta.id].self_assessment is None
    assert averages[zeta.id].peer_assessment == 4

    detailed = answers.detailed_answers_for_group(db, school.project, school.group)
    assert [d.question_id for d in detailed] == sorted([q.grade_id, q.text_id])
    text_answers = next(d for d in detailed if d.question_id == q.text_id).answers
    assert {(a.author_id, a.recipient_id, a.answer) for a in text_answers} == {
        (adams.id, zeta.id, "good"), (zeta.id, adams.id, "great"),
    }


def test_questionnaire_over_http(db, questionnaire, make_client):
    q, school = questionnaire, questionnaire.school
    client = make_client(school.zeta)
    payload = {"questions": [
        {"question_id": q.grade_id, "answers": [{"student_id": school.adams.id, "answer": 1}]},
        {"question_id": q.text_id, "answers": [{"student_id": school.adams.id, "answer": "thanks"}]},
    ]}

    response = client.get(f"/api/project/{school.project.id}/myGroup")
    assert response.status_code == 200
    assert response.json()["activity_status"] == "READY_FOR_ANSWERING"
    assert [g["name"] for g in response.json()["groups"]] == ["Team Red"]

    response = client.post(f"/api/project/{school.project.id}/fragebogenAnswers", json=payload)
    assert response.status_code == 200, response.text

    response = client.post(f"/api/project/{school.project.id}/fragebogenAnswers", json=payload)
    assert response.status_code == 409
    assert response.json()["reason"] == "ALREADY_SUBMITTED"

    response = client.get(f"/api/project/{school.project.id}/myGroup")
    assert response.json()["activity_status"] == "ARCHIVED"

    outsider = make_client(school.mueller)
    response = outsider.post(f"/api/project/{school.project.id}/fragebogenAnswers", json=payload)
    assert response.status_code == 400
    assert response.json()["reason"] == "NOT_IN_GROUP"
    assert outsider.get(f"/api/project/{school.project.id}/myGroup").status_code == 404

    listing = client.get("/api/project/with-questions").json()
    assert [p["id"] for p in listing] == [school.project.id]
    assert client.get(f"/api/project/{school.project.id}/answers/averages").status_code == 403

    teacher = make_client(school.teacher)
    averages = teacher.get(f"/api/project/{school.project.id}/answers/averages").json()
    assert averages[0]["student_id"] == school.adams.id
    assert averages[0]["average_grade"] == 1.0


def test_repeated_question_is_rejected(db, questionnaire):
    q, school = questionnaire, questionnaire.school
    submission = QuestionnaireSubmission.model_validate({"questions": [
        {"question_id": q.grade_id, "answers": [{"student_id": school.zeta.id, "answer": 2}]},
        {"question_id": q.grade_id, "answers": [{"student_id": school.zeta.id, "answer": 3}]},
    ]})

    assert _rejection(db, school.project, school.adams, submission) == RejectReason.QUESTION_COUNT_MISMATCH
    assert db.query(Answer).count() == 0
    assert not answers.has_user_submitted(db, school.project, school.adams)
