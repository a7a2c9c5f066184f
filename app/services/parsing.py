"""Text normalization, net scoring and line tokenizing for pasted imports."""

import re

from app.core.config import settings
from app.schemas.batch_import import ParsedResultLine, ParsedRosterLine

NET_PENALTY = 0.33

# Minimum field counts a tab-split line must reach to skip the whitespace fallback
ROSTER_MIN_FIELDS = 2
RESULT_MIN_FIELDS = 3

# Column widths of the classroom and student tables
MAX_CLASS_NAME_LENGTH = 100
MAX_NAME_LENGTH = 255

_INTEGER_RE = re.compile(r"^\d+$")


class LineParseError(ValueError):
    """A pasted line could not be split into the expected fields."""


class ScoreError(ValueError):
    """Correct/incorrect counts are not usable integers."""


def normalize(value: str) -> str:
    """Lowercase with Turkish casing rules and collapse whitespace.

    ``I`` lowers to dotless ``ı`` and ``İ`` to ``i``, so "YILMAZ" and
    "yılmaz" compare equal. Idempotent.
    """
    lowered = value.replace("I", "ı").replace("İ", "i").lower()
    return " ".join(lowered.split())


def compute_net(correct: int, incorrect: int) -> float:
    """Net score: each incorrect answer costs 0.33 of a correct one."""
    return round(correct - NET_PENALTY * incorrect, 2)


def compute_empty(correct: int, incorrect: int) -> int:
    """Unanswered questions for the fixed-length exam format."""
    return settings.QUESTION_COUNT - correct - incorrect


def split_tabs(line: str) -> list[str]:
    """Split on literal tabs, dropping blank cells."""
    return [part.strip() for part in line.split("\t") if part.strip()]


def parse_roster_line(line: str) -> ParsedRosterLine:
    """Parse ``Name [Surname] ClassName`` from a roster or class-change paste.

    The last field is the class name, the one before it the surname (when
    more than one field remains) and everything else the given name.
    """
    parts = split_tabs(line)
    if len(parts) < ROSTER_MIN_FIELDS:
        parts = line.split()
    if len(parts) < ROSTER_MIN_FIELDS:
        raise LineParseError(f"Expected at least {ROSTER_MIN_FIELDS} fields, got {len(parts)}")

    class_name = parts.pop()
    surname = parts.pop() if len(parts) > 1 else ""
    name = " ".join(parts)
    if not name or not class_name:
        raise LineParseError("Name and class are required")
    if len(class_name) > MAX_CLASS_NAME_LENGTH:
        raise LineParseError(f"Class name is longer than {MAX_CLASS_NAME_LENGTH} characters")
    if len(name) > MAX_NAME_LENGTH or len(surname) > MAX_NAME_LENGTH:
        raise LineParseError(f"Name and surname are limited to {MAX_NAME_LENGTH} characters")
    return ParsedRosterLine(name=name, surname=surname, class_name=class_name)


def parse_result_line(line: str) -> ParsedResultLine:
    """Parse ``ExamName StudentName Correct Incorrect``.

    With tab separated columns the exam and student names come out as
    separate fields. Without tabs the two trailing tokens are taken as the
    scores and the rest is returned as a single merged field that still
    holds both names.
    """
    parts = split_tabs(line)
    if len(parts) >= RESULT_MIN_FIELDS:
        incorrect_raw = parts.pop()
        correct_raw = parts.pop()
        if len(parts) >= 2:
            student_name = parts.pop()
            return ParsedResultLine(
                correct_raw=correct_raw,
                incorrect_raw=incorrect_raw,
                exam_name=" ".join(parts),
                student_name=student_name,
            )
        return ParsedResultLine(
            correct_raw=correct_raw,
            incorrect_raw=incorrect_raw,
            merged=parts[0],
        )

    tokens = line.split()
    if len(tokens) < RESULT_MIN_FIELDS + 1:
        raise LineParseError(f"Expected at least {RESULT_MIN_FIELDS + 1} tokens, got {len(tokens)}")
    incorrect_raw = tokens.pop()
    correct_raw = tokens.pop()
    return ParsedResultLine(
        correct_raw=correct_raw,
        incorrect_raw=incorrect_raw,
        merged=" ".join(tokens),
    )


def parse_scores(correct_raw: str, incorrect_raw: str) -> tuple[int, int]:
    """Validate the score columns of a result line."""
    if not _INTEGER_RE.match(correct_raw) or not _INTEGER_RE.match(incorrect_raw):
        raise ScoreError(f"Scores must be whole numbers: {correct_raw!r}, {incorrect_raw!r}")
    correct = int(correct_raw)
    incorrect = int(incorrect_raw)
    if correct + incorrect > settings.QUESTION_COUNT:
        raise ScoreError(
            f"correct + incorrect ({correct + incorrect}) exceeds {settings.QUESTION_COUNT} questions"
        )
    return correct, incorrect


def iter_lines(text: str):
    """Yield ``(line_number, line)`` for every non-blank line."""
    for line_number, line in enumerate(text.splitlines(), start=1):
        if line.strip():
            yield line_number, line
