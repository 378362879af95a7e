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


import enum
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from database import Base


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


class QuestionType(str, enum.Enum):
    TEXT = "TEXT"
    GRADE = "GRADE"


class QuestionnaireActivityStatus(str, enum.Enum):
    EDITING = "EDITING"
    READY_FOR_ANSWERING = "READY_FOR_ANSWERING"
    ARCHIVED = "ARCHIVED"


course_users = Table(
    "course_users",
    Base.metadata,
    Column("course_id", Integer, ForeignKey("courses.id"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),
)

group_users = Table(
    "group_users",
    Base.metadata,
    Column("group_id", Integer, ForeignKey("groups.id"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),
)

question_subjects = Table(
    "question_subjects",
    Base.metadata,
    Column("question_id", Integer, ForeignKey("questions.id"), primary_key=True),
    Column("subject_id", Integer, ForeignKey("subjects.id"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(Enum(Role), nullable=False, default=Role.STUDENT)

    courses = relationship("Course", secondary=course_users, back_populates="users", collection_class=set)
    groups = relationship("Group", secondary=group_users, back_populates="users", collection_class=set)
    grades = relationship("Grade", back_populates="student", foreign_keys="Grade.student_id",
                          cascade="all, delete-orphan")


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    course_name = Column(String, unique=True, index=True, nullable=False)
    class_teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    class_teacher = relationship("User", foreign_keys=[class_teacher_id])
    users = relationship("User", secondary=course_users, back_populates="courses", collection_class=set)
    projects = relationship("Project", back_populates="course", cascade="all, delete-orphan")


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    project_start = Column(Date, nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    activity_status = Column(Enum(QuestionnaireActivityStatus), nullable=False,
                             default=QuestionnaireActivityStatus.EDITING)

    course = relationship("Course", back_populates="projects")
    groups = relationship("Group", back_populates="project", cascade="all, delete-orphan")
    project_subjects = relationship("ProjectSubject", back_populates="project", cascade="all, delete-orphan")
    project_questions = relationship("ProjectQuestion", back_populates="project", cascade="all, delete-orphan")


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)

    project = relationship("Project", back_populates="groups")
    users = relationship("User", secondary=group_users, back_populates="groups", collection_class=set)


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    short_name = Column(String(10))
    description = Column(String(1000))
    is_learning_field = Column(Boolean, nullable=False, default=False)

    questions = relationship("Question", secondary=question_subjects, back_populates="subjects",
                             collection_class=set)
    project_subjects = relationship("ProjectSubject", back_populates="subject", cascade="all, delete-orphan")


class ProjectSubject(Base):
    __tablename__ = "project_subjects"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    duration = Column(Integer, nullable=False, default=0)

    project = relationship("Project", back_populates="project_subjects")
    subject = relationship("Subject", back_populates="project_subjects")
    performances = relationship("Performance", back_populates="project_subject", cascade="all, delete-orphan")

    __table_args__ = (UniqueConstraint("project_id", "subject_id", name="uq_project_subject"),)


class Performance(Base):
    __tablename__ = "performances"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    short_name = Column(String(3), nullable=False)
    weight = Column(Float, nullable=False)
    project_subject_id = Column(Integer, ForeignKey("project_subjects.id"), nullable=False)

    project_subject = relationship("ProjectSubject", back_populates="performances")
    grades = relationship("Grade", back_populates="performance", cascade="all, delete-orphan")

    __table_args__ = (CheckConstraint("weight > 0 AND weight <= 1", name="check_performance_weight"),)


class Grade(Base):
    __tablename__ = "grades"

    id = Column(Integer, primary_key=True, index=True)
    value = Column(Float, nullable=False)
    weight = Column(Float)
    performance_id = Column(Integer, ForeignKey("performances.id"), nullable=False)
    teacher_id = Column(Integer, ForeignKey("users.id"))
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    performance = relationship("Performance", back_populates="grades")
    teacher = relationship("User", foreign_keys=[teacher_id])
    student = relationship("User", back_populates="grades", foreign_keys=[student_id])

    # German school grades: 1 (best) to 6
    __table_args__ = (
        CheckConstraint("value >= 1 AND value <= 6", name="check_grade_value"),
        UniqueConstraint("performance_id", "student_id", name="uq_grade_student_performance"),
    )


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    text = Column(String(1000), nullable=False)
    type = Column(Enum(QuestionType), nullable=False)

    subjects = relationship("Subject", secondary=question_subjects, back_populates="questions",
                            collection_class=set)
    project_questions = relationship("ProjectQuestion", back_populates="question", cascade="all, delete-orphan")


class ProjectQuestion(Base):
    __tablename__ = "project_questions"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False)

    project = relationship("Project", back_populates="project_questions")
    question = relationship("Question", back_populates="project_questions")
    answers = relationship("Answer", back_populates="project_question", cascade="all, delete-orphan")


class Answer(Base):
    __tablename__ = "answers"

    id = Column(Integer, primary_key=True, index=True)
    project_question_id = Column(Integer, ForeignKey("project_questions.id"), nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    answer_grade = Column(Integer)
    answer_text = Column(Text)

    project_question = relationship("ProjectQuestion", back_populates="answers")
    author = relationship("User", foreign_keys=[author_id])
    recipient = relationship("User", foreign_keys=[recipient_id])
