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

import secrets
import bleach
from sqlalchemy.orm import Session
from sqlalchemy import or_
from models import (
    Answer,
    Course,
    Grade,
    Group,
    Performance,
    Project,
    ProjectQuestion,
    ProjectSubject,
    Question,
    QuestionnaireActivityStatus,
    Role,
    Subject,
    User,
)
from passlib.context import CryptContext

# Configure argon2 for password hashing
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto", argon2__rounds=10, argon2__memory_cost=1024, argon2__parallelism=2)

PASSWORD_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789!@#$%^&*()-_=+"


class NotFoundError(LookupError):
    """Raised when an entity referenced by id does not exist."""


def get_password_hash(password):
    return pwd_context.hash(password)


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def generate_password(length: int = 20) -> str:
    return "".join(secrets.choice(PASSWORD_CHARS) for _ in range(length))


def sanitize(value):
    """Strip markup from client supplied text."""
    if value is None:
        return None
    return bleach.clean(value).strip()


def sort_users(users):
    return sorted(users, key=lambda u: (u.last_name.lower(), u.first_name.lower(), u.id))


def _save(db: Session, obj, commit: bool = True):
    db.add(obj)
    if commit:
        db.commit()
        db.refresh(obj)
    else:
        db.flush()
    return obj


def _finish(db: Session, commit: bool):
    if commit:
        db.commit()
    else:
        db.flush()


# --- users ---

def get_user_by_username(db: Session, username: str):
    return db.query(User).filter(User.username == username).first()


def get_user(db: Session, user_id: int):
    return db.query(User).filter(User.id == user_id).first()


def require_user(db: Session, user_id: int) -> User:
    user = get_user(db, user_id)
    if not user:
        raise NotFoundError(f"User not found: {user_id}")
    return user


def username_exists(db: Session, username: str) -> bool:
    return db.query(User.id).filter(User.username == username).first() is not None


def get_users(db: Session):
    return db.query(User).order_by(User.last_name, User.first_name, User.id).all()


def get_users_by_role(db: Session, role: Role):
    return db.query(User).filter(User.role == role).order_by(User.last_name, User.first_name, User.id).all()


def count_users(db: Session) -> int:
    return db.query(User).count()


def create_user(db: Session, username: str, password: str, role: Role,
                first_name: str, last_name: str, commit: bool = True):
    if username_exists(db, username):
        raise ValueError(f"Username already exists: {username}")
    db_user = User(
        username=username,
        hashed_password=get_password_hash(password),
        role=role,
        first_name=first_name,
        last_name=last_name,
    )
    return _save(db, db_user, commit)


def update_user(db: Session, user_id: int, username: str, first_name: str, last_name: str,
                role: Role, password: str = None):
    user = require_user(db, user_id)
    if username != user.username and username_exists(db, username):
        raise ValueError(f"Username already exists: {username}")

    user.username = username
    user.first_name = first_name
    user.last_name = last_name
    user.role = role
    if password and password.strip():
        user.hashed_password = get_password_hash(password)

    return _save(db, user)


def delete_user(db: Session, user_id: int):
    user = require_user(db, user_id)

    taught = db.query(Course).filter(Course.class_teacher_id == user_id).first()
    if taught:
        raise ValueError(f"User is class teacher of course '{taught.course_name}'")

    db.query(Answer).filter(or_(Answer.author_id == user_id, Answer.recipient_id == user_id)) \
        .delete(synchronize_session=False)
    db.query(Grade).filter(Grade.teacher_id == user_id).update({Grade.teacher_id: None}, synchronize_session=False)

    user.courses.clear()
    user.groups.clear()
    db.delete(user)
    db.commit()


# --- courses ---

def get_course(db: Session, course_id: int):
    return db.query(Course).filter(Course.id == course_id).first()


def require_course(db: Session, course_id: int) -> Course:
    course = get_course(db, course_id)
    if not course:
        raise NotFoundError(f"Course not found: {course_id}")
    return course


def get_course_by_name(db: Session, name: str):
    return db.query(Course).filter(Course.course_name == name).first()


def get_courses(db: Session):
    return db.query(Course).order_by(Course.course_name).all()


def get_courses_for_user(db: Session, user: User):
    return db.query(Course).filter(Course.users.any(User.id == user.id)).order_by(Course.course_name).all()


def create_course(db: Session, course_name: str, teacher_id: int):
    teacher = require_user(db, teacher_id)
    if get_course_by_name(db, course_name):
        raise ValueError(f"Course already exists: {course_name}")

    course = Course(course_name=course_name, class_teacher=teacher)
    course.users.add(teacher)
    return _save(db, course)


def update_course(db: Session, course_id: int, course_name: str, teacher_id: int):
    course = require_course(db, course_id)
    teacher = require_user(db, teacher_id)

    existing = get_course_by_name(db, course_name)
    if existing and existing.id != course.id:
        raise ValueError(f"Course already exists: {course_name}")

    course.course_name = course_name
    course.class_teacher = teacher
    course.users.add(teacher)
    return _save(db, course)


def delete_course(db: Session, course_id: int):
    course = require_course(db, course_id)
    course.users.clear()
    db.delete(course)
    db.commit()


def add_user_to_course(db: Session, course: Course, user: User, commit: bool = True) -> bool:
    course.users.add(user)
    _finish(db, commit)
    return True


def remove_user_from_all_courses(db: Session, user_id: int) -> bool:
    user = get_user(db, user_id)
    if not user:
        return False
    for course in list(user.courses):
        course.users.discard(user)
    db.commit()
    return True


def get_course_students(course: Course):
    return sort_users(u for u in course.users if u.role == Role.STUDENT)


# --- projects ---

def get_project(db: Session, project_id: int):
    return db.query(Project).filter(Project.id == project_id).first()


def require_project(db: Session, project_id: int) -> Project:
    project = get_project(db, project_id)
    if not project:
        raise NotFoundError(f"Project not found: {project_id}")
    return project


def get_projects(db: Session):
    return db.query(Project).order_by(Project.project_start, Project.id).all()


def create_project(db: Session, name: str, course_id: int, project_start, commit: bool = True):
    course = require_course(db, course_id)
    project = Project(name=name, course=course, project_start=project_start)
    return _save(db, project, commit)


def update_project(db: Session, project_id: int, name: str = None, project_start=None, commit: bool = True):
    project = require_project(db, project_id)
    if name:
        project.name = name
    if project_start is not None:
        project.project_start = project_start
    return _save(db, project, commit)


def delete_project(db: Session, project_id: int) -> bool:
    project = get_project(db, project_id)
    if not project:
        return False
    for group in project.groups:
        group.users.clear()
    db.delete(project)
    db.commit()
    return True


def unassigned_students_count(project: Project) -> int:
    students = {u.id for u in project.course.users if u.role == Role.STUDENT}
    assigned = {u.id for g in project.groups for u in g.users}
    return len(students - assigned)


def add_subject_to_project(db: Session, project_id: int, subject_id: int, duration: int):
    project = require_project(db, project_id)
    subject = require_subject(db, subject_id)

    if any(ps.subject_id == subject.id for ps in project.project_subjects):
        raise ValueError("Subject is already added to the project")

    project_subject = ProjectSubject(project=project, subject=subject, duration=duration)
    return _save(db, project_subject)


def remove_subject_from_project(db: Session, project_id: int, subject_id: int):
    project = require_project(db, project_id)
    project_subject = next((ps for ps in project.project_subjects if ps.subject_id == subject_id), None)
    if not project_subject:
        raise NotFoundError("Subject is not part of the project")

    project.project_subjects.remove(project_subject)
    db.commit()


def update_questionnaire(db: Session, project: Project, questions, status: QuestionnaireActivityStatus):
    """Replace the question set of a project.

    Links to questions missing from ``questions`` are dropped (with their answers),
    known questions are updated in place and unknown ones are created.
    """
    requested_ids = {q.id for q in questions if q.id is not None}
    for project_question in list(project.project_questions):
        if project_question.question_id not in requested_ids:
            project.project_questions.remove(project_question)

    for item in questions:
        question = get_question(db, item.id) if item.id is not None else None
        if question is None:
            question = Question()
            db.add(question)
        question.text = sanitize(item.text)
        question.type = item.type
        db.flush()

        if not any(pq.question_id == question.id for pq in project.project_questions):
            project.project_questions.append(ProjectQuestion(question=question))

    project.activity_status = status
    db.commit()
    db.refresh(project)
    return project


# --- groups ---

def get_group(db: Session, group_id: int):
    return db.query(Group).filter(Group.id == group_id).first()


def require_group(db: Session, group_id: int) -> Group:
    group = get_group(db, group_id)
    if not group:
        raise NotFoundError(f"Group not found: {group_id}")
    return group


def get_groups_for_project(db: Session, project_id: int):
    return db.query(Group).filter(Group.project_id == project_id).order_by(Group.id).all()


def create_group(db: Session, name: str, project: Project, members=None, commit: bool = True):
    group = Group(name=name, project=project)
    for member in members or []:
        group.users.add(member)
    return _save(db, group, commit)


def user_in_project_group(db: Session, user_id: int, project_id: int) -> bool:
    return db.query(Group.id).filter(
        Group.project_id == project_id,
        Group.users.any(User.id == user_id),
    ).first() is not None


def add_user_to_group(db: Session, group_id: int, user_id: int):
    group = require_group(db, group_id)
    user = require_user(db, user_id)
    if user_in_project_group(db, user.id, group.project_id):
        raise ValueError("Student is already in a group of this project")

    group.users.add(user)
    return _save(db, group)


def remove_user_from_group(db: Session, group_id: int, user_id: int):
    group = require_group(db, group_id)
    user = require_user(db, user_id)
    group.users.discard(user)
    return _save(db, group)


def delete_group(db: Session, group_id: int):
    group = require_group(db, group_id)
    group.users.clear()
    db.delete(group)
    db.commit()


def delete_groups_for_project(db: Session, project_id: int, commit: bool = True):
    project = require_project(db, project_id)
    for group in list(project.groups):
        group.users.clear()
        project.groups.remove(group)
    _finish(db, commit)


def get_students_in_group(db: Session, group_id: int):
    return db.query(User).filter(
        User.role == Role.STUDENT,
        User.groups.any(Group.id == group_id),
    ).all()


def get_students_in_project_course(db: Session, project_id: int):
    return db.query(User).filter(
        User.role == Role.STUDENT,
        User.courses.any(Course.projects.any(Project.id == project_id)),
    ).all()


# --- subjects ---

def get_subject(db: Session, subject_id: int):
    return db.query(Subject).filter(Subject.id == subject_id).first()


def require_subject(db: Session, subject_id: int) -> Subject:
    subject = get_subject(db, subject_id)
    if not subject:
        raise NotFoundError(f"Subject not found: {subject_id}")
    return subject


def get_subjects(db: Session):
    return db.query(Subject).order_by(Subject.name).all()


def create_subject(db: Session, name: str, short_name: str = None, description: str = None,
                   is_learning_field: bool = False):
    subject = Subject(name=name, short_name=short_name, description=description,
                      is_learning_field=is_learning_field)
    return _save(db, subject)


def update_subject(db: Session, subject_id: int, name: str, short_name: str = None,
                   description: str = None, is_learning_field: bool = False):
    subject = require_subject(db, subject_id)
    subject.name = name
    subject.short_name = short_name
    subject.description = description
    subject.is_learning_field = is_learning_field
    return _save(db, subject)


def delete_subject(db: Session, subject_id: int):
    subject = require_subject(db, subject_id)
    subject.questions.clear()
    db.delete(subject)
    db.commit()


# --- project subjects ---

def get_project_subject(db: Session, project_subject_id: int):
    return db.query(ProjectSubject).filter(ProjectSubject.id == project_subject_id).first()


def require_project_subject(db: Session, project_subject_id: int) -> ProjectSubject:
    project_subject = get_project_subject(db, project_subject_id)
    if not project_subject:
        raise NotFoundError(f"Project_Subject not found: {project_subject_id}")
    return project_subject


def get_project_subjects(db: Session, project_id: int):
    return db.query(ProjectSubject).filter(ProjectSubject.project_id == project_id) \
        .order_by(ProjectSubject.id).all()


def update_project_subject(db: Session, project_subject_id: int, duration: int,
                           short_name: str = None, is_learning_field: bool = False):
    project_subject = require_project_subject(db, project_subject_id)
    project_subject.duration = duration
    # the subject's flags are edited through the project view
    project_subject.subject.short_name = short_name
    project_subject.subject.is_learning_field = is_learning_field
    return _save(db, project_subject)


def delete_project_subject(db: Session, project_subject_id: int):
    project_subject = require_project_subject(db, project_subject_id)
    db.delete(project_subject)
    db.commit()


# --- performances ---

def _check_weight(weight):
    if weight is None or not 0 < weight <= 1:
        raise ValueError("Weight must be greater than 0 and at most 1")


def get_performance(db: Session, performance_id: int):
    return db.query(Performance).filter(Performance.id == performance_id).first()


def require_performance(db: Session, performance_id: int) -> Performance:
    performance = get_performance(db, performance_id)
    if not performance:
        raise NotFoundError(f"Performance not found: {performance_id}")
    return performance


def get_performances_for_project_subject(db: Session, project_subject_id: int):
    return db.query(Performance).filter(Performance.project_subject_id == project_subject_id) \
        .order_by(Performance.id).all()


def create_performance(db: Session, name: str, short_name: str, weight: float, project_subject_id: int):
    _check_weight(weight)
    project_subject = require_project_subject(db, project_subject_id)
    performance = Performance(name=name, short_name=short_name, weight=weight, project_subject=project_subject)
    return _save(db, performance)


def update_performance(db: Session, performance_id: int, name: str, short_name: str, weight: float):
    _check_weight(weight)
    performance = require_performance(db, performance_id)
    performance.name = name
    performance.short_name = short_name
    performance.weight = weight
    return _save(db, performance)


def delete_performance(db: Session, performance_id: int):
    performance = require_performance(db, performance_id)
    db.delete(performance)
    db.commit()


# --- grades ---

def check_grade_value(value):
    if value is None or not 1 <= value <= 6:
        raise ValueError("Grade must be between 1 and 6")


def get_grade(db: Session, grade_id: int):
    return db.query(Grade).filter(Grade.id == grade_id).first()


def get_grade_for_student_and_performance(db: Session, student_id: int, performance_id: int):
    return db.query(Grade).filter(
        Grade.student_id == student_id,
        Grade.performance_id == performance_id,
    ).first()


def get_grades_for_project(db: Session, project_id: int):
    return db.query(Grade) \
        .join(Grade.performance) \
        .join(Performance.project_subject) \
        .filter(ProjectSubject.project_id == project_id) \
        .all()


def update_grade(db: Session, grade_id: int, value: float):
    check_grade_value(value)
    grade = get_grade(db, grade_id)
    if not grade:
        raise NotFoundError(f"Grade not found: {grade_id}")
    grade.value = value
    return _save(db, grade)


def delete_grade(db: Session, grade_id: int):
    grade = get_grade(db, grade_id)
    if not grade:
        raise NotFoundError(f"Grade not found: {grade_id}")
    db.delete(grade)
    db.commit()


# --- questions and answers ---

def get_question(db: Session, question_id: int):
    return db.query(Question).filter(Question.id == question_id).first()


def get_questions(db: Session):
    return db.query(Question).order_by(Question.id).all()


def create_question(db: Session, text: str, question_type, subject_ids=()):
    subjects = {require_subject(db, subject_id) for subject_id in subject_ids}
    question = Question(text=text, type=question_type, subjects=subjects)
    return _save(db, question)


def get_answers_for_project(db: Session, project_id: int):
    return db.query(Answer) \
        .join(Answer.project_question) \
        .filter(ProjectQuestion.project_id == project_id) \
        .order_by(Answer.id) \
        .all()


def get_answers_by_author_and_project(db: Session, author_id: int, project_id: int):
    return db.query(Answer) \
        .join(Answer.project_question) \
        .filter(Answer.author_id == author_id, ProjectQuestion.project_id == project_id) \
        .all()


# --- batch project and group editing ---

def _eligible_members(db: Session, member_ids, course: Course):
    """Resolve ids to students of ``course``; anything else is skipped."""
    members = set()
    for member_id in member_ids:
        user = get_user(db, member_id)
        if user is None or user.role != Role.STUDENT or course not in user.courses:
            continue
        members.add(user)
    return members


def create_project_full(db: Session, name: str, course_id: int, project_start, groups):
    try:
        project = create_project(db, sanitize(name), course_id, project_start, commit=False)
        for item in groups:
            members = _eligible_members(db, item.member_ids, project.course)
            create_group(db, sanitize(item.group_name), project, members, commit=False)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(project)
    return project


def update_project_full(db: Session, project_id: int, name: str, project_start, groups):
    """Overwrite name, start and the complete group layout of a project.

    Groups with a known id are renamed and get their member set replaced, groups
    without one are created and groups missing from ``groups`` are deleted.
    """
    try:
        project = update_project(db, project_id, sanitize(name), project_start, commit=False)
        existing = {group.id: group for group in project.groups}
        kept = set()

        for item in groups:
            members = _eligible_members(db, item.member_ids, project.course)
            group = existing.get(item.group_id)
            if group is None:
                create_group(db, sanitize(item.group_name), project, members, commit=False)
                continue
            group.name = sanitize(item.group_name)
            group.users = members
            kept.add(group.id)

        for group_id, group in existing.items():
            if group_id not in kept:
                group.users.clear()
                project.groups.remove(group)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(project)
    return project


def create_groups_from_course(db: Session, course_id: int, project_id: int, group_amount: int, rng=None):
    """Replace the groups of a project by ``group_amount`` randomly filled groups."""
    course = require_course(db, course_id)
    project = require_project(db, project_id)
    if group_amount < 1:
        raise ValueError("Group amount must be at least 1")

    students = get_course_students(course)
    (rng or secrets.SystemRandom()).shuffle(students)

    try:
        delete_groups_for_project(db, project.id, commit=False)
        groups = [Group(name=f"Group {i}") for i in range(1, group_amount + 1)]
        project.groups.extend(groups)
        for index, student in enumerate(students):
            groups[index % group_amount].users.add(student)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return groups
