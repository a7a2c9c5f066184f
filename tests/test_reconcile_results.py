"""Tests for the exam result reconciler and absence inference."""

import pytest

from app.models.exam import ResultStatus
from app.schemas.batch_import import EntityKind, IssueReason, MutationAction, Snapshot
from app.services.reconcile import AmbiguousExamError, reconcile_results, split_merged_field
from factories import apply_mutations, classroom, exam, result, student


SCENARIO = (
    "LGS Deneme 1\tAhmet Yılmaz\t8\t2\n"
    "LGS Deneme 1\tAyşe Demir\t6\t3\n"
)


@pytest.fixture
def snapshot():
    return Snapshot(
        classrooms=[classroom("c-1", "8/A"), classroom("c-2", "8/B")],
        students=[
            student("s-ahmet", "Ahmet", "Yılmaz", "c-1"),
            student("s-ayse", "Ayşe", "Demir", "c-1"),
            student("s-mehmet", "Mehmet", "Can", "c-1"),
            student("s-other", "Zeynep", "Kaya", "c-2"),
        ],
        exam_definitions=[exam("e-1", "LGS Deneme 1")],
    )


def results_by_student(snapshot):
    return {r.student_id: r for r in snapshot.exam_results}


class TestResultImport:
    def test_listed_students_attend_and_classmates_are_absent(self, snapshot, id_factory):
        mutations, summary = reconcile_results(SCENARIO, snapshot, id_factory)

        assert (summary.added, summary.updated, summary.skipped, summary.auto_absent) == (2, 0, 0, 1)
        assert all(m.action == MutationAction.CREATE for m in mutations)
        assert all(m.kind == EntityKind.EXAM_RESULT for m in mutations)

        stored = results_by_student(apply_mutations(snapshot, mutations))
        assert stored["s-ahmet"].net == 7.34
        assert stored["s-ahmet"].empty == 0
        assert stored["s-ayse"].net == 5.01
        assert stored["s-ayse"].empty == 1
        assert stored["s-ahmet"].status == stored["s-ayse"].status == ResultStatus.ATTENDED

        absent = stored["s-mehmet"]
        assert absent.status == ResultStatus.MISSING
        assert (absent.correct, absent.incorrect, absent.empty, absent.net) == (0, 0, 0, 0)
        assert "s-other" not in stored
        assert {r.exam_id for r in stored.values()} == {"e-1"}
        assert stored["s-ahmet"].date == snapshot.exam_definitions[0].date

    def test_reimport_updates_without_duplicates(self, snapshot, id_factory):
        mutations, _ = reconcile_results(SCENARIO, snapshot, id_factory)
        first = apply_mutations(snapshot, mutations)

        mutations, summary = reconcile_results(SCENARIO, first, id_factory)
        second = apply_mutations(first, mutations)

        assert (summary.added, summary.updated, summary.auto_absent) == (0, 2, 0)
        assert all(m.action == MutationAction.UPDATE for m in mutations)
        pairs = [(r.student_id, r.exam_id) for r in second.exam_results]
        assert len(pairs) == len(set(pairs)) == 3
        assert second.exam_results == first.exam_results

    def test_absent_student_listed_later_becomes_attended(self, snapshot, id_factory):
        mutations, _ = reconcile_results(SCENARIO, snapshot, id_factory)
        first = apply_mutations(snapshot, mutations)
        missing_id = results_by_student(first)["s-mehmet"].id

        mutations, summary = reconcile_results("LGS Deneme 1\tMehmet Can\t7\t0", first, id_factory)
        stored = results_by_student(apply_mutations(first, mutations))

        assert summary.updated == 1
        assert stored["s-mehmet"].id == missing_id
        assert stored["s-mehmet"].status == ResultStatus.ATTENDED
        assert stored["s-mehmet"].net == 7

    def test_prior_result_blocks_absence_marking(self, snapshot, id_factory):
        snapshot.exam_results.append(result("r-manual", "s-mehmet", snapshot.exam_definitions[0], correct=9))
        mutations, summary = reconcile_results(SCENARIO, snapshot, id_factory)

        assert summary.auto_absent == 0
        stored = results_by_student(apply_mutations(snapshot, mutations))
        assert stored["s-mehmet"].id == "r-manual"
        assert stored["s-mehmet"].correct == 9

    def test_undefined_exam_is_reported_and_never_created(self, snapshot, id_factory):
        text = "Olmayan Deneme\tAhmet Yılmaz\t8\t2\nOlmayan Deneme\tAyşe Demir\t5\t1"
        mutations, summary = reconcile_results(text, snapshot, id_factory)

        assert mutations == []
        assert summary.unresolved_exams == ["Olmayan Deneme"]
        assert summary.skipped == 2
        assert {i.reason for i in summary.issues} == {IssueReason.UNRESOLVED_EXAM}

    def test_surname_first_names_resolve(self, snapshot, id_factory):
        mutations, summary = reconcile_results("lgs deneme 1\tYILMAZ AHMET\t8\t2", snapshot, id_factory)

        assert summary.added == 1
        assert mutations[0].entity.student_id == "s-ahmet"
        assert mutations[0].entity.exam_name == "LGS Deneme 1"

    def test_unknown_student_is_skipped(self, snapshot, id_factory):
        mutations, summary = reconcile_results("LGS Deneme 1\tKimse Yok\t8\t2", snapshot, id_factory)

        assert mutations == []
        assert summary.skipped == 1
        assert summary.issues[0].reason == IssueReason.STUDENT_NOT_FOUND

    def test_score_boundary(self, snapshot, id_factory):
        text = "LGS Deneme 1\tAhmet Yılmaz\t4\t6\nLGS Deneme 1\tAyşe Demir\t5\t6"
        mutations, summary = reconcile_results(text, snapshot, id_factory)

        assert (summary.added, summary.skipped) == (1, 1)
        assert mutations[0].entity.empty == 0
        assert summary.issues[0].reason == IssueReason.INVALID_SCORE
        assert summary.issues[0].line == 2

    def test_space_separated_line_uses_known_exam_names(self, snapshot, id_factory):
        snapshot.exam_definitions.append(exam("e-10", "LGS Deneme 10", "2024-05-01"))
        text = "LGS Deneme 1 Ahmet Yılmaz 8 2\nLGS Deneme 10 Ayşe Demir 6 3"
        mutations, summary = reconcile_results(text, snapshot, id_factory)

        attended = [m.entity for m in mutations if m.entity.status == ResultStatus.ATTENDED]
        assert [(r.student_id, r.exam_id) for r in attended] == [("s-ahmet", "e-1"), ("s-ayse", "e-10")]
        assert summary.added == 2

    def test_space_separated_line_without_known_exam_is_unresolved(self, snapshot, id_factory):
        mutations, summary = reconcile_results("TYT Deneme 3 Ahmet Yılmaz 8 2", snapshot, id_factory)

        assert mutations == []
        assert summary.unresolved_exams == ["TYT Deneme 3 Ahmet Yılmaz"]

    def test_absence_is_scoped_per_exam(self, snapshot, id_factory):
        snapshot.exam_definitions.append(exam("e-2", "LGS Deneme 2", "2024-04-01"))
        text = "LGS Deneme 1\tAhmet Yılmaz\t8\t2\nLGS Deneme 2\tZeynep Kaya\t5\t5"
        mutations, summary = reconcile_results(text, snapshot, id_factory)

        missing = {(m.entity.student_id, m.entity.exam_id) for m in mutations
                   if m.entity.status == ResultStatus.MISSING}
        assert missing == {("s-ayse", "e-1"), ("s-mehmet", "e-1")}
        assert summary.auto_absent == 2

    def test_ambiguous_student_uses_first_and_reports(self, snapshot, id_factory):
        snapshot.students.append(student("s-ahmet-2", "Ahmet", "Yılmaz", "c-2"))
        mutations, summary = reconcile_results("LGS Deneme 1\tAhmet Yılmaz\t8\t2", snapshot, id_factory)

        assert mutations[0].entity.student_id == "s-ahmet"
        assert summary.issues[0].reason == IssueReason.AMBIGUOUS_STUDENT


class TestSplitMergedField:
    def test_longest_exam_name_wins(self):
        definitions = [exam("e-1", "Deneme"), exam("e-2", "Deneme 2")]
        assert split_merged_field("Deneme 2 Ali Veli", definitions) == ("Deneme 2", "ali veli")

    def test_prefix_must_end_on_a_word(self):
        assert split_merged_field("Deneme 10 Ali Veli", [exam("e-1", "Deneme 1")]) is None

    def test_same_name_twice_is_ambiguous(self):
        definitions = [exam("e-1", "Deneme"), exam("e-2", "DENEME")]
        with pytest.raises(AmbiguousExamError):
            split_merged_field("Deneme Ali Veli", definitions)

    def test_ambiguous_exam_in_paste_is_unresolved(self, snapshot, id_factory):
        snapshot.exam_definitions.append(exam("e-dup", "lgs deneme 1"))
        mutations, summary = reconcile_results("LGS Deneme 1 Ahmet Yılmaz 8 2", snapshot, id_factory)

        assert mutations == []
        assert summary.issues[0].reason == IssueReason.AMBIGUOUS_EXAM
        assert summary.unresolved_exams == ["LGS Deneme 1 Ahmet Yılmaz"]
