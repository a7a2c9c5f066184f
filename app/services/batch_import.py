"""Batch import service: runs a reconciler and applies its mutations."""

import logging
from collections.abc import Callable

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import BatchImportError, StoreWriteError
from app.schemas.batch_import import (
    ClassChangeImportSummary,
    EntityKind,
    Mutation,
    MutationAction,
    ResultImportSummary,
    RosterImportSummary,
)
from app.services.entity_store import EntityStore, SqlEntityStore
from app.services.reconcile import reconcile_class_changes, reconcile_results, reconcile_roster

logger = logging.getLogger(__name__)


class ImportService:
    """Paste import processing service.

    Partial success is allowed: unusable lines are skipped and reported in
    the summary. A failed write stops the batch.
    """

    def __init__(self, db: Session, store: EntityStore | None = None):
        self.db = db
        self.store = store or SqlEntityStore(db)
        self._writers: dict[tuple[MutationAction, EntityKind], Callable] = {
            (MutationAction.CREATE, EntityKind.CLASSROOM): self.store.create_classroom,
            (MutationAction.UPDATE, EntityKind.CLASSROOM): self.store.update_classroom,
            (MutationAction.CREATE, EntityKind.STUDENT): self.store.create_student,
            (MutationAction.UPDATE, EntityKind.STUDENT): self.store.update_student,
            (MutationAction.CREATE, EntityKind.EXAM_RESULT): self.store.create_exam_result,
            (MutationAction.UPDATE, EntityKind.EXAM_RESULT): self.store.update_exam_result,
        }

    def import_roster(self, text: str) -> RosterImportSummary:
        """Create students and classrooms from ``Name Surname ClassName`` lines."""
        self._check_text(text, "ROSTER")
        mutations, summary = reconcile_roster(text, self.store.load_all())
        self._apply(mutations, "ROSTER")

        summary.message = (
            f"{summary.added} students added, {summary.updated} moved to a new class, "
            f"{summary.skipped} lines skipped or already up to date."
        )
        if summary.created_classrooms:
            names = ", ".join(c.name for c in summary.created_classrooms)
            summary.message += f" New classes: {names}."
        logger.info(
            f"[ROSTER IMPORT] Complete - Added: {summary.added}, Updated: {summary.updated}, "
            f"Skipped: {summary.skipped}, New classrooms: {len(summary.created_classrooms)}"
        )
        return summary

    def import_results(self, text: str) -> ResultImportSummary:
        """Upsert exam results from ``ExamName StudentName Correct Incorrect`` lines."""
        self._check_text(text, "RESULT")
        mutations, summary = reconcile_results(text, self.store.load_all())
        self._apply(mutations, "RESULT")

        summary.message = (
            f"{summary.added} results added, {summary.updated} updated, "
            f"{summary.auto_absent} students marked absent, {summary.skipped} lines skipped."
        )
        if summary.unresolved_exams:
            summary.message += (
                " Define these exams and paste again: "
                + ", ".join(summary.unresolved_exams) + "."
            )
        logger.info(
            f"[RESULT IMPORT] Complete - Added: {summary.added}, Updated: {summary.updated}, "
            f"Absent: {summary.auto_absent}, Skipped: {summary.skipped}, "
            f"Unresolved exams: {summary.unresolved_exams}"
        )
        return summary

    def import_class_changes(self, text: str) -> ClassChangeImportSummary:
        """Move existing students listed as ``Name Surname NewClassName``."""
        self._check_text(text, "CLASS CHANGE")
        mutations, summary = reconcile_class_changes(text, self.store.load_all())
        self._apply(mutations, "CLASS CHANGE")

        summary.message = (
            f"{summary.updated} students moved, {summary.not_found} not found, "
            f"{summary.skipped} lines skipped."
        )
        logger.info(
            f"[CLASS CHANGE IMPORT] Complete - Updated: {summary.updated}, "
            f"Not found: {summary.not_found}, Skipped: {summary.skipped}"
        )
        return summary

    def _check_text(self, text: str, tag: str) -> None:
        """Reject pastes that hold nothing or are too large to be a roster."""
        logger.info(f"[{tag} IMPORT] Starting import of {len(text)} characters")
        if not text.strip():
            raise BatchImportError("Nothing to import: the pasted text is empty")
        if len(text) > settings.MAX_IMPORT_CHARS:
            raise BatchImportError(
                f"Pasted text exceeds {settings.MAX_IMPORT_CHARS} characters",
                details={"length": len(text)},
            )

    def _apply(self, mutations: list[Mutation], tag: str) -> None:
        """Write mutations in order; the first failure aborts the batch."""
        for applied, mutation in enumerate(mutations):
            writer = self._writers[(mutation.action, mutation.kind)]
            logger.debug(f"[{tag} IMPORT] {mutation.action.value} {mutation.kind.value} {mutation.entity.id}")
            try:
                writer(mutation.entity)
            except Exception as e:
                logger.error(
                    f"[{tag} IMPORT] Write failed after {applied} of {len(mutations)} mutations: {e}"
                )
                raise StoreWriteError(
                    f"Failed to save import: {str(e)}",
                    applied=applied,
                    total=len(mutations),
                )
