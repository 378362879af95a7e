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
from datetime import date
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Any, List, Optional, Union
from models import QuestionType, QuestionnaireActivityStatus, Role


# --- users ---

class UserBase(BaseModel):
    username: str = Field(min_length=1)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    role: Role


USERNAME_PATTERN = r"^[\w.\-]+$"


class UserCreate(UserBase):
    username: str = Field(min_length=1, pattern=USERNAME_PATTERN)
    password: str = Field(min_length=1)


class UserUpdate(UserBase):
    username: str = Field(min_length=1, pattern=USERNAME_PATTERN)
    # blank or missing keeps the current password
    password: Optional[str] = None


class User(UserBase):
    id: int

    class Config:
        from_attributes = True


class Student(BaseModel):
    id: int
    username: str
    first_name: str
    last_name: str

    class Config:
        from_attributes = True


class LoginRequest(BaseModel):
    username: str
    password: str


# --- courses ---

class CourseBase(BaseModel):
    course_name: str = Field(min_length=1)
    teacher_id: int


class CourseCreate(CourseBase):
    pass


class CourseUpdate(CourseBase):
    pass


class Course(BaseModel):
    id: int
    course_name: str
    class_teacher_id: int

    class Config:
        from_attributes = True


class CourseBare(BaseModel):
    id: int
    course_name: str
    class_teacher_name: str


# --- subjects, performances, questions ---

class SubjectBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    short_name: Optional[str] = Field(default=None, max_length=10)
    description: Optional[str] = Field(default=None, max_length=1000)
    is_learning_field: bool = False


class SubjectCreate(SubjectBase):
    pass


class Subject(SubjectBase):
    id: int

    class Config:
        from_attributes = True


class PerformanceBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    short_name: str = Field(min_length=1, max_length=3)
    weight: float = Field(gt=0, le=1)


class PerformanceCreate(PerformanceBase):
    project_subject_id: int


class PerformanceEdit(PerformanceBase):
    id: int


class Performance(BaseModel):
    id: int
    name: str
    short_name: str
    # percent in the grade overview, fraction elsewhere
    weight: float

    class Config:
        from_attributes = True


class ProjectSubjectEdit(BaseModel):
    id: int
    duration: int = Field(ge=0)
    short_name: Optional[str] = Field(default=None, max_length=10)
    is_learning_field: bool = False


class ProjectSubject(BaseModel):
    id: int
    subject_id: int
    name: str
    short_name: Optional[str] = None
    duration: int
    is_learning_field: bool
    performances: List[Performance] = []


class QuestionCreate(BaseModel):
    text: str = Field(min_length=1, max_length=1000)
    type: QuestionType
    subject_ids: List[int] = []


class Question(BaseModel):
    id: int
    text: str
    type: QuestionType
    subject_ids: List[int] = []


# --- groups ---

class GroupCreate(BaseModel):
    group_name: str = Field(min_length=1)
    project_id: int


class GroupMemberChange(BaseModel):
    group_id: int
    student_id: int


class GroupsFromCourse(BaseModel):
    course_id: int
    project_id: int
    group_amount: int = Field(ge=1)


class GroupMembers(BaseModel):
    id: int
    name: str
    members: List[Student] = []


# --- projects ---

class ProjectCreate(BaseModel):
    project_name: str = Field(min_length=1)
    course_id: int
    project_start: date


class ProjectUpdate(BaseModel):
    project_name: Optional[str] = None


class GroupWithMembersCreate(BaseModel):
    group_name: str = Field(min_length=1)
    member_ids: List[int] = []


class ProjectCreateFull(ProjectCreate):
    groups: List[GroupWithMembersCreate] = []


class ProjectGroupPut(BaseModel):
    group_id: Optional[int] = None
    group_name: str = Field(min_length=1)
    member_ids: List[int] = []


class ProjectPutFull(BaseModel):
    project_name: str = Field(min_length=1)
    project_start: date
    groups: List[ProjectGroupPut] = []


class ProjectCreated(BaseModel):
    id: int


class ProjectSummary(BaseModel):
    id: int
    name: str
    course_id: int
    course_name: str
    class_teacher_id: Optional[int] = None
    class_teacher_name: str
    group_count: int
    unassigned_students: int
    project_start: date


class ProjectDetail(ProjectSummary):
    groups: List[GroupMembers] = []
    subjects: List[ProjectSubject] = []


class AddSubjectToProject(BaseModel):
    subject_id: int
    duration: int = Field(default=0, ge=0)


# --- questionnaires ---

class QuestionnaireQuestion(BaseModel):
    id: Optional[int] = None
    text: str = Field(min_length=1, max_length=1000)
    type: QuestionType


class QuestionnairePut(BaseModel):
    questions: List[QuestionnaireQuestion] = []
    status: QuestionnaireActivityStatus = QuestionnaireActivityStatus.EDITING


class ProjectWithQuestions(BaseModel):
    id: int
    name: str
    course_name: str
    activity_status: QuestionnaireActivityStatus
    questions: List[Question] = []


class QuestionnaireProject(BaseModel):
    id: int
    name: str
    question_count: int


class QuestionnaireCourse(BaseModel):
    id: int
    course_name: str
    projects: List[QuestionnaireProject] = []


class ProjectQuestionnaireDetail(BaseModel):
    id: int
    name: str
    activity_status: QuestionnaireActivityStatus
    questions: List[Question] = []
    groups: List[GroupMembers] = []


class StudentAnswer(BaseModel):
    student_id: int
    # checked against the question type, not coerced
    answer: Any = None


class QuestionAnswers(BaseModel):
    question_id: int
    answers: List[StudentAnswer] = []


class QuestionnaireSubmission(BaseModel):
    questions: List[QuestionAnswers] = []


class DetailedStudentAnswer(BaseModel):
    author_id: int
    recipient_id: int
    answer: Union[int, str, None] = None


class DetailedQuestionAnswers(BaseModel):
    question_id: int
    answers: List[DetailedStudentAnswer] = []


class StudentGradeAverage(BaseModel):
    student_id: int
    student_name: str
    average_grade: Optional[float] = None
    grade_count: int
    self_assessment: Optional[float] = None
    peer_assessment: Optional[float] = None


# --- grades ---

class GradeCell(BaseModel):
    grade_id: Optional[int] = None
    performance_id: int
    grade: Optional[float] = None


class StudentGradeRow(BaseModel):
    student_id: int
    first_name: str
    last_name: str
    group_name: str
    grades: List[GradeCell] = []


class SubjectOverview(BaseModel):
    project_subject_id: int
    name: str
    short_name: Optional[str] = None
    duration: int
    is_learning_field: bool
    performances: List[Performance] = []


class GradeOverview(BaseModel):
    subjects: List[SubjectOverview] = []
    students: List[StudentGradeRow] = []


class GradeUpdateCell(BaseModel):
    performance_id: Optional[int] = None
    grade: Optional[float] = None


class UpdateGradeRequest(BaseModel):
    student_id: Optional[int] = None
    grades: List[GradeUpdateCell] = []


class SubjectGradeEntry(BaseModel):
    grade: Decimal
    # percent, e.g. 25 for a quarter
    weight: float


class GroupSelection(BaseModel):
    id: int
    name: str


class ProjectSelection(BaseModel):
    id: int
    name: str
    project_start: date
    groups: List[GroupSelection] = []
    can_edit: bool


class CourseSelection(BaseModel):
    id: int
    course_name: str
    projects: List[ProjectSelection] = []


# --- csv import and pdfs ---

class CsvType(str, enum.Enum):
    USERS = "USERS"
    CLASSES = "CLASSES"


class CsvMetadata(BaseModel):
    type: CsvType


class CreatedUser(BaseModel):
    username: str
    first_name: str
    last_name: str
    role: Role
    courses: List[str] = []


class CsvImportResult(BaseModel):
    success: bool = False
    processed: int = 0
    failed: int = 0
    errors: List[str] = []
    warnings: List[str] = []
    created: List[CreatedUser] = []
    credentials_file: Optional[str] = None


class PdfFile(BaseModel):
    name: str
    size: int
    last_modified: int
