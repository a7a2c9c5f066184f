"""Batch import schemas: pasted text in, mutations and summaries out."""

import enum

from pydantic import ConfigDict

from app.schemas.classroom import ClassroomResponse
from app.schemas.common import BaseSchema
from app.schemas.exam import ExamDefinitionResponse, ExamResultResponse
from app.schemas.student import StudentResponse


class ImportRequest(BaseSchema):
    """Pasted text, one record per line."""

    # Tabs are significant column separators, so leading/trailing ones must survive
    text: str

    model_config = ConfigDict(str_strip_whitespace=False)


# ==========================================
# Tokenized lines
# ==========================================

class ParsedRosterLine(BaseSchema):
    """A roster or class-change line split into its fields."""

    name: str
    surname: str = ""
    class_name: str


class ParsedResultLine(BaseSchema):
    """A result line split into its fields.

    Either ``exam_name`` and ``student_name`` are set (tab separated input)
    or ``merged`` holds both names run together.
    """

    correct_raw: str
    incorrect_raw: str
    exam_name: str | None = None
    student_name: str | None = None
    merged: str | None = None


# ==========================================
# Snapshot and mutations
# ==========================================

class Snapshot(BaseSchema):
    """Every entity the reconcilers match against."""

    classrooms: list[ClassroomResponse] = []
    students: list[StudentResponse] = []
    exam_definitions: list[ExamDefinitionResponse] = []
    exam_results: list[ExamResultResponse] = []


class MutationAction(str, enum.Enum):
    """Write to issue against the entity store."""

    CREATE = "create"
    UPDATE = "update"


class EntityKind(str, enum.Enum):
    """Collections an import may write to."""

    CLASSROOM = "classroom"
    STUDENT = "student"
    EXAM_RESULT = "exam_result"


class Mutation(BaseSchema):
    """A single create or update produced by a reconciler."""

    action: MutationAction
    kind: EntityKind
    entity: ClassroomResponse | StudentResponse | ExamResultResponse


# ==========================================
# Summaries
# ==========================================

class IssueReason(str, enum.Enum):
    """Why a pasted line was skipped or flagged."""

    PARSE_ERROR = "parse_error"
    INVALID_SCORE = "invalid_score"
    UNRESOLVED_EXAM = "unresolved_exam"
    AMBIGUOUS_EXAM = "ambiguous_exam"
    STUDENT_NOT_FOUND = "student_not_found"
    AMBIGUOUS_STUDENT = "ambiguous_student"


class RowIssue(BaseSchema):
    """A problem found on one line of the paste."""

    line: int
    reason: IssueReason
    message: str
    raw: str = ""


class RosterImportSummary(BaseSchema):
    """Outcome of a student roster import."""

    added: int = 0
    updated: int = 0
    skipped: int = 0
    created_classrooms: list[ClassroomResponse] = []
    issues: list[RowIssue] = []
    message: str = ""


class ResultImportSummary(BaseSchema):
    """Outcome of an exam result import."""

    added: int = 0
    updated: int = 0
    skipped: int = 0
    auto_absent: int = 0
    unresolved_exams: list[str] = []
    issues: list[RowIssue] = []
    message: str = ""


class ClassChangeImportSummary(BaseSchema):
    """Outcome of a class reassignment import."""

    updated: int = 0
    not_found: int = 0
    skipped: int = 0
    created_classrooms: list[ClassroomResponse] = []
    issues: list[RowIssue] = []
    message: str = ""
