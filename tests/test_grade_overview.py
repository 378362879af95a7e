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

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

import crud_ops
import grade_overview
from models import Grade
from schemas import GradeUpdateCell, SubjectGradeEntry, UpdateGradeRequest


@pytest.fixture
def graded(db, school):
    math = crud_ops.create_subject(db, "Mathematics", "MA")
    physics = crud_ops.create_subject(db, "Physics", "PH")
    ps_math = crud_ops.add_subject_to_project(db, school.project.id, math.id, 20)
    ps_physics = crud_ops.add_subject_to_project(db, school.project.id, physics.id, 10)

    test = crud_ops.create_performance(db, "Written test", "WT", 0.25, ps_math.id)
    talk = crud_ops.create_performance(db, "Presentation", "PR", 0.75, ps_math.id)
    lab = crud_ops.create_performance(db, "Lab report", "LR", 1.0, ps_physics.id)
    return SimpleNamespace(school=school, performances=[test, talk, lab])


def _save(db, teacher, student_id, performance_id, value):
    request = UpdateGradeRequest(student_id=student_id,
                                 grades=[GradeUpdateCell(performance_id=performance_id, grade=value)])
    return grade_overview.save_grade_overview(db, [request], teacher)


def test_overview_is_dense_with_empty_cells(db, graded):
    school = graded.school
    test, talk, lab = graded.performances
    _save(db, school.teacher, school.adams.id, talk.id, 2.0)

    overview = grade_overview.load_grade_overview(db, school.project.id)

    assert [s.name for s in overview.subjects] == ["Mathematics", "Physics"]
    assert [p.weight for p in overview.subjects[0].performances] == [25.0, 75.0]
    assert len(overview.students) == 3
    for row in overview.students:
        assert [cell.performance_id for cell in row.grades] == [test.id, talk.id, lab.id]

    adams = next(r for r in overview.students if r.student_id == school.adams.id)
    assert [cell.grade for cell in adams.grades] == [None, 2.0, None]
    assert adams.grades[0].grade_id is None
    assert adams.grades[1].grade_id is not None


def test_overview_sorts_by_last_name_case_insensitive(db, graded):
    overview = grade_overview.load_grade_overview(db, graded.school.project.id)
    assert [r.last_name for r in overview.students] == ["adams", "Mueller", "Zeta"]


def test_overview_group_filter_and_group_names(db, graded):
    school = graded.school

    full = grade_overview.load_grade_overview(db, school.project.id)
    names = {r.last_name: r.group_name for r in full.students}
    assert names == {"adams": "Team Red", "Mueller": "", "Zeta": "Team Red"}

    filtered = grade_overview.load_grade_overview(db, school.project.id, school.group.id)
    assert [r.last_name for r in filtered.students] == ["adams", "Zeta"]


def test_overview_without_subjects_has_empty_rows(db, school):
    overview = grade_overview.load_grade_overview(db, school.project.id)
    assert overview.subjects == []
    assert all(row.grades == [] for row in overview.students)


def test_overview_unknown_project(db):
    with pytest.raises(crud_ops.NotFoundError):
        grade_overview.load_grade_overview(db, 4711)


def test_save_creates_then_overwrites(db, graded):
    school = graded.school
    test = graded.performances[0]

    _save(db, school.teacher, school.zeta.id, test.id, 3.0)
    _save(db, school.teacher, school.zeta.id, test.id, 1.5)

    grades = db.query(Grade).filter(Grade.student_id == school.zeta.id).all()
    assert len(grades) == 1
    assert grades[0].value == 1.5
    assert grades[0].teacher_id == school.teacher.id
    assert grades[0].weight == 0.25


def test_save_skips_null_student_and_null_cells(db, graded):
    school = graded.school
    test = graded.performances[0]
    requests = [
        UpdateGradeRequest(student_id=None, grades=[GradeUpdateCell(performance_id=test.id, grade=2.0)]),
        UpdateGradeRequest(student_id=school.zeta.id, grades=[
            GradeUpdateCell(performance_id=None, grade=2.0),
            GradeUpdateCell(performance_id=test.id, grade=None),
        ]),
    ]

    assert grade_overview.save_grade_overview(db, requests, school.teacher) == 0
    assert db.query(Grade).count() == 0


def test_null_grade_keeps_existing_value(db, graded):
    school = graded.school
    test = graded.performances[0]
    _save(db, school.teacher, school.zeta.id, test.id, 4.0)
    _save(db, school.teacher, school.zeta.id, test.id, None)

    assert db.query(Grade).one().value == 4.0


def test_single_grade_update_and_delete(db, graded):
    school = graded.school
    test = graded.performances[0]
    _save(db, school.teacher, school.zeta.id, test.id, 4.0)
    grade = crud_ops.get_grade_for_student_and_performance(db, school.zeta.id, test.id)

    assert crud_ops.update_grade(db, grade.id, 2.5).value == 2.5
    assert [g.id for g in crud_ops.get_grades_for_project(db, school.project.id)] == [grade.id]
    with pytest.raises(ValueError):
        crud_ops.update_grade(db, grade.id, 7)

    crud_ops.delete_grade(db, grade.id)
    assert crud_ops.get_grade(db, grade.id) is None
    with pytest.raises(crud_ops.NotFoundError):
        crud_ops.delete_grade(db, grade.id)


def test_unknown_performance_aborts_whole_batch(db, graded):
    school = graded.school
    test = graded.performances[0]
    request = UpdateGradeRequest(student_id=school.zeta.id, grades=[
        GradeUpdateCell(performance_id=test.id, grade=2.0),
        GradeUpdateCell(performance_id=999, grade=2.0),
    ])

    with pytest.raises(crud_ops.NotFoundError):
        grade_overview.save_grade_overview(db, [request], school.teacher)
    assert db.query(Grade).count() == 0


def test_grade_out_of_range_is_rejected(db, graded):
    school = graded.school
    with pytest.raises(ValueError):
        _save(db, school.teacher, school.zeta.id, graded.performances[0].id, 7.0)
    assert db.query(Grade).count() == 0


@pytest.mark.parametrize("entries, expected", [
    ([(1, 50), (3, 50)], Decimal("2.00")),
    ([(1, 25), (2, 25), (4, 50)], Decimal("2.75")),
    ([(1, 33.333), (2, 66.666)], Decimal("1.67")),
    ([], Decimal("0")),
    ([(3, 0.4)], Decimal("0")),
])
def test_calculate_subject_grade(entries, expected):
    grade_entries = [SubjectGradeEntry(grade=Decimal(str(g)), weight=w) for g, w in entries]
    assert grade_overview.calculate_subject_grade(grade_entries) == expected


def test_options_mark_editable_projects(db, graded, make_user, admin):
    from models import Role

    school = graded.school
    other_teacher = make_user("Olaf", "Other", Role.TEACHER)
    crud_ops.add_user_to_course(db, school.course, other_teacher)

    own = grade_overview.grade_overview_options(db, school.teacher)
    assert own[0].projects[0].can_edit is True
    assert own[0].projects[0].groups[0].name == "Team Red"

    assert grade_overview.grade_overview_options(db, other_teacher)[0].projects[0].can_edit is False
    assert grade_overview.grade_overview_options(db, admin)[0].projects[0].can_edit is True


def test_overview_and_save_over_http(db, graded, make_client):
    school = graded.school
    test = graded.performances[0]
    client = make_client(school.teacher)

    response = client.post("/api/grade/save", json=[
        {"student_id": school.mueller.id, "grades": [{"performance_id": test.id, "grade": 2}]},
    ])
    assert response.status_code == 200
    assert response.json()["count"] == 1

    response = client.get("/api/grade/overview", params={"projectId": school.project.id})
    assert response.status_code == 200
    mueller = next(r for r in response.json()["students"] if r["student_id"] == school.mueller.id)
    assert mueller["grades"][0]["grade"] == 2.0

    response = client.post("/api/grade/save", json=[
        {"student_id": school.mueller.id, "grades": [{"performance_id": 999, "grade": 2}]},
    ])
    assert response.status_code == 404


def test_student_cannot_save_grades(graded, make_client):
    school = graded.school
    client = make_client(school.zeta)
    assert client.get("/api/grade/overview", params={"projectId": school.project.id}).status_code == 403

    response = client.post("/api/grade/calculateSubjectGrade", json=[{"grade": 2, "weight": 100}])
    assert response.status_code == 200
    assert Decimal(str(response.json())) == Decimal("2.00")


def test_group_of_another_project_is_not_found(db, graded, make_client):
    school = graded.school
    other = crud_ops.create_project(db, "Wind Turbine", school.course.id, date(2026, 5, 1))
    foreign = crud_ops.create_group(db, "Team Blue", other, [school.mueller])

    with pytest.raises(crud_ops.NotFoundError):
        grade_overview.load_grade_overview(db, school.project.id, foreign.id)

    client = make_client(school.teacher)
    response = client.get("/api/grade/overview", params={"projectId": school.project.id, "groupId": foreign.id})
    assert response.status_code == 404
    response = client.get("/api/grade/overview", params={"projectId": school.project.id, "groupId": school.group.id})
    assert response.status_code == 200
