from collections.abc import Iterable

import pytest

from hla_mismatch.utils import (
    GROUPED_LOCI,
    MATCH_GRADE_LOCI,
    InvalidDirection,
    InvalidMatchGrade,
    MalformedInput,
    check_batch_lengths,
    check_direction,
    check_homozygous_count,
    check_match_grade,
    expand_loci,
    extract_locus,
    normalize_loci,
)


@pytest.mark.parametrize("direction", ["HvG", "GvH", "bidirectional", "SOT"])
def test_check_direction_good_cases(direction: str):
    assert check_direction(direction) == direction


@pytest.mark.parametrize("direction", ["hvg", "both", "", "HvG "])
def test_check_direction_bad_cases(direction: str):
    with pytest.raises(InvalidDirection):
        check_direction(direction)


@pytest.mark.parametrize("match_grade", ["Xof8", "Xof10"])
def test_check_match_grade_good_cases(match_grade: str):
    assert check_match_grade(match_grade) == match_grade


@pytest.mark.parametrize("match_grade", ["Xof6", "xof8", "8"])
def test_check_match_grade_bad_cases(match_grade: str):
    with pytest.raises(InvalidMatchGrade):
        check_match_grade(match_grade)


@pytest.mark.parametrize("homozygous_count", [0, 3, -1])
def test_check_homozygous_count_bad_cases(homozygous_count: int):
    with pytest.raises(ValueError):
        check_homozygous_count(homozygous_count)


@pytest.mark.parametrize(
    "text, expected_locus",
    [
        pytest.param("HLA-A*01:01", "HLA-A", id="single_allele"),
        pytest.param(
            "HLA-DRB1*15:01+HLA-DRB1*04:01", "HLA-DRB1", id="genotype"
        ),
        pytest.param(
            "HLA-DQB1*06:02+HLA-DQB1*02:01|HLA-DQB1*06:03+HLA-DQB1*02:02",
            "HLA-DQB1",
            id="ambiguous_genotype",
        ),
        pytest.param("B*57:01", "B", id="no_hla_prefix"),
        pytest.param("  HLA-C*07:01", "HLA-C", id="leading_whitespace"),
    ],
)
def test_extract_locus(text: str, expected_locus: str):
    assert extract_locus(text) == expected_locus


@pytest.mark.parametrize(
    "text",
    [
        pytest.param("HLA-A01:01", id="no_asterisk"),
        pytest.param("*01:01", id="nothing_before_asterisk"),
        pytest.param("", id="empty"),
    ],
)
def test_extract_locus_bad_cases(text: str):
    with pytest.raises(MalformedInput):
        extract_locus(text)


class TestExpandLoci:
    def test_ordinary_locus(self):
        assert expand_loci("HLA-A") == ("HLA-A",)

    @pytest.mark.parametrize("grouped_locus", list(GROUPED_LOCI))
    def test_grouped_locus(self, grouped_locus: str):
        assert expand_loci(grouped_locus) == GROUPED_LOCI[grouped_locus]
        assert len(expand_loci(grouped_locus)) == 3


def test_match_grade_panels():
    assert set(MATCH_GRADE_LOCI["Xof10"]) - set(MATCH_GRADE_LOCI["Xof8"]) == {
        "HLA-DQB1"
    }


@pytest.mark.parametrize(
    "loci, expected_result",
    [
        pytest.param("HLA-A", ["HLA-A"], id="single_string"),
        pytest.param(["HLA-A", "HLA-B"], ["HLA-A", "HLA-B"], id="list"),
        pytest.param(("HLA-B", "HLA-A"), ["HLA-B", "HLA-A"], id="tuple_keeps_order"),
    ],
)
def test_normalize_loci(loci: str | Iterable[str], expected_result: list[str]):
    assert normalize_loci(loci) == expected_result


def test_normalize_loci_empty():
    with pytest.raises(ValueError):
        normalize_loci([])


@pytest.mark.parametrize(
    "loci",
    [
        pytest.param(["HLA-A", "HLA-A"], id="repeated_locus"),
        pytest.param(
            ["HLA-DRB3/4/5", "HLA-B", "HLA-DRB3/4/5"], id="repeated_group"
        ),
    ],
)
def test_normalize_loci_repeated(loci: list[str]):
    with pytest.raises(ValueError, match="only be specified once"):
        normalize_loci(loci)


def test_check_batch_lengths():
    check_batch_lengths(["a", "b"], ["c", "d"])
    with pytest.raises(ValueError):
        check_batch_lengths(["a", "b"], ["c"])
