"""Batch reconcilers for pasted roster, result and class-change text.

Each reconciler is a pure function of ``(text, snapshot)``. It works on a
private copy of the snapshot, so entities created by an earlier line are
visible to later lines of the same paste, and returns the ordered list of
mutations to apply together with a summary. Nothing here touches the store.
"""

import logging
from collections.abc import Callable

from app.core.config import settings
from app.models.base import generate_id
from app.models.exam import ResultStatus
from app.schemas.batch_import import (
    ClassChangeImportSummary,
    EntityKind,
    IssueReason,
    Mutation,
    MutationAction,
    ResultImportSummary,
    RosterImportSummary,
    RowIssue,
    Snapshot,
)
from app.schemas.classroom import ClassroomResponse
from app.schemas.exam import ExamDefinitionResponse, ExamResultResponse
from app.schemas.student import StudentResponse
from app.services.parsing import (
    LineParseError,
    ScoreError,
    compute_empty,
    compute_net,
    iter_lines,
    normalize,
    parse_result_line,
    parse_roster_line,
    parse_scores,
)

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


class BatchContext:
    """Working copy of a snapshot threaded through one batch."""

    def __init__(self, snapshot: Snapshot, id_factory: IdFactory = generate_id):
        copied = snapshot.model_copy(deep=True)
        self.classrooms: list[ClassroomResponse] = copied.classrooms
        self.students: list[StudentResponse] = copied.students
        self.exam_definitions: list[ExamDefinitionResponse] = copied.exam_definitions
        self.exam_results: list[ExamResultResponse] = copied.exam_results
        self.mutations: list[Mutation] = []
        self.new_id = id_factory

    def _record(self, action: MutationAction, kind: EntityKind, entity) -> None:
        self.mutations.append(Mutation(action=action, kind=kind, entity=entity))

    # Classrooms

    def find_classroom(self, name: str) -> ClassroomResponse | None:
        key = normalize(name)
        for classroom in self.classrooms:
            if normalize(classroom.name) == key:
                return classroom
        return None

    def resolve_classroom(self, name: str) -> tuple[ClassroomResponse, bool]:
        """Find a classroom by name, creating it when absent."""
        classroom = self.find_classroom(name)
        if classroom is not None:
            return classroom, False
        classroom = ClassroomResponse(id=self.new_id(), name=name)
        self.classrooms.append(classroom)
        self._record(MutationAction.CREATE, EntityKind.CLASSROOM, classroom)
        logger.debug(f"[BATCH] Created classroom '{name}' ({classroom.id})")
        return classroom, True

    # Students

    def find_students_by_parts(self, name: str, surname: str) -> list[StudentResponse]:
        """Students whose (name, surname) match, in snapshot order."""
        name_key, surname_key = normalize(name), normalize(surname)
        return [
            s for s in self.students
            if normalize(s.name) == name_key and normalize(s.surname) == surname_key
        ]

    def find_students_by_full_name(self, full_name: str) -> list[StudentResponse]:
        """Students matching "name surname" or "surname name", in snapshot order."""
        key = normalize(full_name)
        return [
            s for s in self.students
            if normalize(f"{s.name} {s.surname}") == key
            or normalize(f"{s.surname} {s.name}") == key
        ]

    def add_student(self, name: str, surname: str, classroom_id: str) -> StudentResponse:
        student = StudentResponse(
            id=self.new_id(),
            name=name,
            surname=surname,
            classroom_id=classroom_id,
            target_correct=settings.DEFAULT_TARGET_CORRECT,
        )
        self.students.append(student)
        self._record(MutationAction.CREATE, EntityKind.STUDENT, student)
        return student

    def move_student(self, student: StudentResponse, classroom_id: str) -> StudentResponse:
        updated = student.model_copy(update={"classroom_id": classroom_id})
        self.students[self.students.index(student)] = updated
        self._record(MutationAction.UPDATE, EntityKind.STUDENT, updated)
        return updated

    # Exams

    def find_exam(self, exam_name: str) -> ExamDefinitionResponse | None:
        key = normalize(exam_name)
        for definition in self.exam_definitions:
            if normalize(definition.name) == key:
                return definition
        return None

    def find_result(self, student_id: str, exam_id: str) -> ExamResultResponse | None:
        for result in self.exam_results:
            if result.student_id == student_id and result.exam_id == exam_id:
                return result
        return None

    def upsert_result(self, result: ExamResultResponse) -> bool:
        """Store a result, replacing the existing row for the same pair.

        Returns True when a row was replaced.
        """
        existing = self.find_result(result.student_id, result.exam_id)
        if existing is not None:
            result = result.model_copy(update={"id": existing.id})
            self.exam_results[self.exam_results.index(existing)] = result
            self._record(MutationAction.UPDATE, EntityKind.EXAM_RESULT, result)
            return True
        self.exam_results.append(result)
        self._record(MutationAction.CREATE, EntityKind.EXAM_RESULT, result)
        return False


def _issue(line_number: int, reason: IssueReason, message: str, raw: str) -> RowIssue:
    logger.warning(f"[BATCH] Line {line_number} {reason.value}: {message}")
    return RowIssue(line=line_number, reason=reason, message=message, raw=raw.strip())


def _ambiguity_issue(line_number: int, label: str, matches: list[StudentResponse], raw: str) -> RowIssue:
    ids = ", ".join(s.id for s in matches)
    return _issue(
        line_number,
        IssueReason.AMBIGUOUS_STUDENT,
        f"'{label}' matches {len(matches)} students ({ids}); used the first",
        raw,
    )


# ==========================================
# Roster import
# ==========================================

def reconcile_roster(
    text: str,
    snapshot: Snapshot,
    id_factory: IdFactory = generate_id,
) -> tuple[list[Mutation], RosterImportSummary]:
    """Create or move students listed as ``Name Surname ClassName``."""
    ctx = BatchContext(snapshot, id_factory)
    summary = RosterImportSummary()

    for line_number, line in iter_lines(text):
        try:
            row = parse_roster_line(line)
        except LineParseError as e:
            summary.skipped += 1
            summary.issues.append(_issue(line_number, IssueReason.PARSE_ERROR, str(e), line))
            continue

        classroom, created = ctx.resolve_classroom(row.class_name)
        if created:
            summary.created_classrooms.append(classroom)

        matches = ctx.find_students_by_parts(row.name, row.surname)
        if not matches:
            ctx.add_student(row.name, row.surname, classroom.id)
            summary.added += 1
            continue

        if len(matches) > 1:
            summary.issues.append(
                _ambiguity_issue(line_number, f"{row.name} {row.surname}".strip(), matches, line)
            )
        student = matches[0]
        if student.classroom_id != classroom.id:
            ctx.move_student(student, classroom.id)
            summary.updated += 1
        else:
            summary.skipped += 1

    return ctx.mutations, summary


# ==========================================
# Class reassignment import
# ==========================================

def reconcile_class_changes(
    text: str,
    snapshot: Snapshot,
    id_factory: IdFactory = generate_id,
) -> tuple[list[Mutation], ClassChangeImportSummary]:
    """Move existing students listed as ``Name Surname NewClassName``.

    Unknown students are reported, never created.
    """
    ctx = BatchContext(snapshot, id_factory)
    summary = ClassChangeImportSummary()

    for line_number, line in iter_lines(text):
        try:
            row = parse_roster_line(line)
        except LineParseError as e:
            summary.skipped += 1
            summary.issues.append(_issue(line_number, IssueReason.PARSE_ERROR, str(e), line))
            continue

        classroom, created = ctx.resolve_classroom(row.class_name)
        if created:
            summary.created_classrooms.append(classroom)

        full_name = f"{row.name} {row.surname}".strip()
        matches = ctx.find_students_by_parts(row.name, row.surname)
        if not matches:
            summary.not_found += 1
            summary.issues.append(
                _issue(line_number, IssueReason.STUDENT_NOT_FOUND, f"No student named '{full_name}'", line)
            )
            continue

        if len(matches) > 1:
            summary.issues.append(_ambiguity_issue(line_number, full_name, matches, line))
        student = matches[0]
        if student.classroom_id != classroom.id:
            ctx.move_student(student, classroom.id)
            summary.updated += 1

    return ctx.mutations, summary


# ==========================================
# Exam result import
# ==========================================

class AmbiguousExamError(LookupError):
    """More than one exam definition claims the same prefix."""


def split_merged_field(
    merged: str,
    exam_definitions: list[ExamDefinitionResponse],
) -> tuple[str, str] | None:
    """Split "Exam Name Student Name" using the known exam names.

    Definitions are tried longest name first; the first one whose name is a
    whole-word prefix of the merged text wins and the remainder is the
    student name. Returns None when no definition matches.
    """
    merged_key = normalize(merged)
    candidates = sorted(
        ((normalize(d.name), d) for d in exam_definitions),
        key=lambda pair: len(pair[0]),
        reverse=True,
    )
    for index, (name_key, definition) in enumerate(candidates):
        if not name_key or not merged_key.startswith(name_key):
            continue
        remainder = merged_key[len(name_key):]
        if remainder and not remainder.startswith(" "):
            continue
        rivals = [
            other for other_key, other in candidates[index + 1:]
            if other_key == name_key and other.id != definition.id
        ]
        if rivals:
            raise AmbiguousExamError(definition.name)
        return definition.name, remainder.strip()
    return None


def reconcile_results(
    text: str,
    snapshot: Snapshot,
    id_factory: IdFactory = generate_id,
) -> tuple[list[Mutation], ResultImportSummary]:
    """Upsert results pasted as ``ExamName StudentName Correct Incorrect``.

    Exams must already be defined. After every line is processed, each
    student in a classroom that took part in an exam but who was not listed
    and has no result for it gets a MISSING result.
    """
    ctx = BatchContext(snapshot, id_factory)
    summary = ResultImportSummary()
    unresolved: dict[str, None] = {}
    # exam_id -> student ids listed in this paste, and their classroom ids
    seen_students: dict[str, set[str]] = {}
    involved_classrooms: dict[str, set[str]] = {}

    def unresolved_exam(line_number: int, exam_name: str, line: str, ambiguous: bool = False) -> None:
        summary.skipped += 1
        unresolved.setdefault(exam_name, None)
        if ambiguous:
            reason, message = IssueReason.AMBIGUOUS_EXAM, f"More than one exam is named like '{exam_name}'"
        else:
            reason, message = IssueReason.UNRESOLVED_EXAM, f"Exam '{exam_name}' is not defined"
        summary.issues.append(_issue(line_number, reason, message, line))

    for line_number, line in iter_lines(text):
        try:
            row = parse_result_line(line)
            correct, incorrect = parse_scores(row.correct_raw, row.incorrect_raw)
        except LineParseError as e:
            summary.skipped += 1
            summary.issues.append(_issue(line_number, IssueReason.PARSE_ERROR, str(e), line))
            continue
        except ScoreError as e:
            summary.skipped += 1
            summary.issues.append(_issue(line_number, IssueReason.INVALID_SCORE, str(e), line))
            continue

        if row.merged is not None:
            try:
                split = split_merged_field(row.merged, ctx.exam_definitions)
            except AmbiguousExamError:
                unresolved_exam(line_number, row.merged, line, ambiguous=True)
                continue
            if split is None:
                unresolved_exam(line_number, row.merged, line)
                continue
            exam_name, student_name = split
        else:
            exam_name, student_name = row.exam_name, row.student_name

        definition = ctx.find_exam(exam_name)
        if definition is None:
            unresolved_exam(line_number, exam_name, line)
            continue

        matches = ctx.find_students_by_full_name(student_name)
        if not matches:
            summary.skipped += 1
            summary.issues.append(
                _issue(line_number, IssueReason.STUDENT_NOT_FOUND, f"No student named '{student_name}'", line)
            )
            continue
        if len(matches) > 1:
            summary.issues.append(_ambiguity_issue(line_number, student_name, matches, line))
        student = matches[0]

        seen_students.setdefault(definition.id, set()).add(student.id)
        involved_classrooms.setdefault(definition.id, set()).add(student.classroom_id)

        result = ExamResultResponse(
            id=ctx.new_id(),
            student_id=student.id,
            exam_id=definition.id,
            exam_name=definition.name,
            date=definition.date,
            correct=correct,
            incorrect=incorrect,
            empty=compute_empty(correct, incorrect),
            net=compute_net(correct, incorrect),
            status=ResultStatus.ATTENDED,
        )
        if ctx.upsert_result(result):
            summary.updated += 1
        else:
            summary.added += 1

    summary.auto_absent = _mark_absentees(ctx, seen_students, involved_classrooms)
    summary.unresolved_exams = list(unresolved)
    return ctx.mutations, summary


def _mark_absentees(
    ctx: BatchContext,
    seen_students: dict[str, set[str]],
    involved_classrooms: dict[str, set[str]],
) -> int:
    """Add MISSING results for unlisted classmates. Returns how many were added."""
    definitions = {d.id: d for d in ctx.exam_definitions}
    marked = 0
    for exam_id, classroom_ids in involved_classrooms.items():
        definition = definitions[exam_id]
        seen = seen_students[exam_id]
        before = marked
        for student in ctx.students:
            if student.classroom_id not in classroom_ids or student.id in seen:
                continue
            if ctx.find_result(student.id, exam_id) is not None:
                continue
            ctx.upsert_result(
                ExamResultResponse(
                    id=ctx.new_id(),
                    student_id=student.id,
                    exam_id=exam_id,
                    exam_name=definition.name,
                    date=definition.date,
                    status=ResultStatus.MISSING,
                )
            )
            marked += 1
        if marked > before:
            logger.info(f"[BATCH] Exam '{definition.name}': {marked - before} students marked absent")
    return marked
