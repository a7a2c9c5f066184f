"""Tests for normalization, net scoring and line tokenizing."""

import pytest

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


class TestNormalize:
    def test_turkish_casing_and_spacing_compare_equal(self):
        assert normalize("Ahmet Yılmaz ") == normalize("ahmet yılmaz") == normalize("AHMET   YILMAZ")

    def test_dotted_capital_i(self):
        assert normalize("İSTANBUL") == "istanbul"
        assert normalize("Ahmet YILMAZ") == normalize("ahmet yılmaz")

    def test_collapses_tabs_and_newlines(self):
        assert normalize("  Ali \t  Veli\n") == normalize("Ali Veli") == "ali veli"

    def test_idempotent(self):
        for value in ["Işıl İnce", "  ÇAĞRI   ÖZ  ", "8/A", ""]:
            assert normalize(normalize(value)) == normalize(value)


class TestComputeNet:
    @pytest.mark.parametrize(
        "correct, incorrect, expected",
        [(8, 2, 7.34), (10, 0, 10), (0, 10, -3.3), (6, 3, 5.01), (0, 0, 0)],
    )
    def test_examples(self, correct, incorrect, expected):
        assert compute_net(correct, incorrect) == expected

    def test_matches_formula_across_valid_range(self):
        for correct in range(11):
            for incorrect in range(11 - correct):
                assert compute_net(correct, incorrect) == round(correct - 0.33 * incorrect, 2)

    def test_empty_fills_the_ten_questions(self):
        assert compute_empty(8, 2) == 0
        assert compute_empty(6, 3) == 1


class TestParseRosterLine:
    def test_space_separated(self):
        row = parse_roster_line("Ali Veli 8/A")
        assert (row.name, row.surname, row.class_name) == ("Ali", "Veli", "8/A")

    def test_extra_given_names_are_joined(self):
        row = parse_roster_line("Ali Can Veli 8/A")
        assert (row.name, row.surname, row.class_name) == ("Ali Can", "Veli", "8/A")

    def test_tab_separated_keeps_multi_word_cells(self):
        row = parse_roster_line("Ali Can\tVeli\t8 A")
        assert (row.name, row.surname, row.class_name) == ("Ali Can", "Veli", "8 A")

    def test_two_fields_have_no_surname(self):
        row = parse_roster_line("Ali 8/A")
        assert (row.name, row.surname, row.class_name) == ("Ali", "", "8/A")

    def test_single_field_is_rejected(self):
        with pytest.raises(LineParseError):
            parse_roster_line("Ali")


class TestParseResultLine:
    def test_tab_separated_columns(self):
        row = parse_result_line("LGS Deneme 1\tAhmet Yılmaz\t8\t2")
        assert row.exam_name == "LGS Deneme 1"
        assert row.student_name == "Ahmet Yılmaz"
        assert (row.correct_raw, row.incorrect_raw) == ("8", "2")
        assert row.merged is None

    def test_extra_tab_cells_fold_into_exam_name(self):
        row = parse_result_line("LGS\tDeneme 1\tAhmet Yılmaz\t8\t2")
        assert row.exam_name == "LGS Deneme 1"
        assert row.student_name == "Ahmet Yılmaz"

    def test_space_separated_returns_merged_field(self):
        row = parse_result_line("LGS Deneme 1 Ahmet Yılmaz 8 2")
        assert row.merged == "LGS Deneme 1 Ahmet Yılmaz"
        assert (row.correct_raw, row.incorrect_raw) == ("8", "2")
        assert row.exam_name is None

    def test_three_tab_cells_leave_names_merged(self):
        row = parse_result_line("LGS Deneme 1 Ahmet Yılmaz\t8\t2")
        assert row.merged == "LGS Deneme 1 Ahmet Yılmaz"

    def test_too_few_tokens(self):
        with pytest.raises(LineParseError):
            parse_result_line("Deneme 8 2")


class TestParseScores:
    def test_full_sheet_is_accepted(self):
        assert parse_scores("4", "6") == (4, 6)

    def test_more_than_ten_answers_rejected(self):
        with pytest.raises(ScoreError):
            parse_scores("5", "6")

    @pytest.mark.parametrize("correct, incorrect", [("x", "2"), ("8", ""), ("7.5", "1"), ("-1", "2")])
    def test_non_integers_rejected(self, correct, incorrect):
        with pytest.raises(ScoreError):
            parse_scores(correct, incorrect)


def test_iter_lines_skips_blank_lines_and_keeps_numbering():
    text = "first\n\n   \nsecond\r\nthird"
    assert list(iter_lines(text)) == [(1, "first"), (4, "second"), (5, "third")]
