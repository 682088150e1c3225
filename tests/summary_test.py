import pytest

from hla_mismatch.mismatch import BatchMismatchError
from hla_mismatch.models import CaseResult
from hla_mismatch.summary import match_summary_cases, match_summary_hct
from hla_mismatch.utils import (
    IncompleteGenotype,
    InvalidDirection,
    InvalidMatchGrade,
    MalformedInput,
)

RECIPIENT_8: str = (
    "HLA-A*01:01+HLA-A*02:01^HLA-B*07:02+HLA-B*08:01"
    "^HLA-C*07:01+HLA-C*07:02^HLA-DRB1*15:01+HLA-DRB1*03:01"
)
# Matches RECIPIENT_8 except for one allele at DRB1.
DONOR_8: str = (
    "HLA-A*01:01+HLA-A*02:01^HLA-B*07:02+HLA-B*08:01"
    "^HLA-C*07:01+HLA-C*07:02^HLA-DRB1*15:01+HLA-DRB1*04:01"
)
RECIPIENT_10: str = RECIPIENT_8 + "^HLA-DQB1*06:02+HLA-DQB1*02:01"
DONOR_10: str = DONOR_8 + "^HLA-DQB1*06:02+HLA-DQB1*03:01"


@pytest.mark.parametrize("direction", ["HvG", "GvH", "bidirectional", "SOT"])
def test_xof8_one_drb1_mismatch(direction: str):
    assert match_summary_hct(RECIPIENT_8, DONOR_8, direction, "Xof8") == 1


@pytest.mark.parametrize("direction", ["HvG", "GvH", "bidirectional"])
def test_xof10(direction: str):
    assert match_summary_hct(RECIPIENT_10, DONOR_10, direction, "Xof10") == 2


def test_xof8_ignores_dqb1():
    assert match_summary_hct(RECIPIENT_10, DONOR_10, match_grade="Xof8") == 1


def test_defaults():
    assert match_summary_hct(RECIPIENT_8, RECIPIENT_8) == 0


def test_bidirectional_takes_max_per_locus():
    # The recipient has a single allele at HLA-B, which the donor lacks.
    recipient: str = (
        "HLA-A*01:01+HLA-A*02:01^HLA-B*07:02"
        "^HLA-C*07:01+HLA-C*07:02^HLA-DRB1*15:01+HLA-DRB1*03:01"
    )
    donor: str = (
        "HLA-A*01:01+HLA-A*03:01^HLA-B*08:01+HLA-B*44:02"
        "^HLA-C*07:01+HLA-C*07:02^HLA-DRB1*15:01+HLA-DRB1*03:01"
    )
    # HLA-A: HvG 1, GvH 1; HLA-B: HvG 2, GvH 2.
    assert match_summary_hct(recipient, donor, "HvG") == 3
    assert match_summary_hct(recipient, donor, "GvH") == 3
    assert match_summary_hct(recipient, donor, "bidirectional") == 3


@pytest.mark.parametrize(
    "recipient, donor",
    [
        pytest.param(RECIPIENT_10, DONOR_8, id="donor_missing_dqb1"),
        pytest.param(RECIPIENT_8, DONOR_10, id="recipient_missing_dqb1"),
    ],
)
def test_xof10_missing_dqb1(recipient: str, donor: str):
    with pytest.raises(IncompleteGenotype):
        match_summary_hct(recipient, donor, "bidirectional", "Xof10")


def test_xof8_missing_locus():
    donor: str = "HLA-A*01:01+HLA-A*02:01^HLA-B*07:02+HLA-B*08:01^HLA-DRB1*15:01"
    with pytest.raises(IncompleteGenotype) as e:
        match_summary_hct(RECIPIENT_8, donor, "HvG", "Xof8")
    assert "HLA-C" in str(e.value)


def test_invalid_match_grade():
    with pytest.raises(InvalidMatchGrade):
        match_summary_hct(RECIPIENT_8, DONOR_8, "bidirectional", "Xof12")


def test_invalid_direction():
    with pytest.raises(InvalidDirection):
        match_summary_hct(RECIPIENT_8, DONOR_8, "forwards", "Xof8")


def test_batch():
    assert match_summary_hct(
        [RECIPIENT_8, RECIPIENT_10, RECIPIENT_8],
        [DONOR_8, DONOR_10, RECIPIENT_8],
        "bidirectional",
        "Xof8",
    ) == [1, 1, 0]


def test_batch_with_incomplete_case():
    with pytest.raises(BatchMismatchError) as e:
        match_summary_hct(
            [RECIPIENT_10, RECIPIENT_10],
            [DONOR_10, DONOR_8],
            "bidirectional",
            "Xof10",
        )
    assert e.value.results[0].value == 2
    assert isinstance(e.value.results[1].error, IncompleteGenotype)


def test_match_summary_cases():
    results: list[CaseResult] = match_summary_cases(
        [RECIPIENT_8, "HLA-A*01:01+"],
        [DONOR_8, DONOR_8],
        "GvH",
        "Xof8",
    )
    assert results[0].value == 1
    assert isinstance(results[1].error, MalformedInput)
