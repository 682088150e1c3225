from collections.abc import Sequence
from typing import Optional, Union, cast

from .gl_string import parse_gl_string
from .mismatch import compare_genotypes, evaluate_cases, unwrap_results
from .models import CaseResult, GenotypeList, MismatchRecord
from .utils import (
    DIRECTION,
    MATCH_GRADE,
    MATCH_GRADE_LOCI,
    IncompleteGenotype,
    check_direction,
    check_match_grade,
)


def case_match_summary(
    recipient_gl: Optional[str],
    donor_gl: Optional[str],
    direction: DIRECTION,
    match_grade: MATCH_GRADE,
) -> int:
    panel: tuple[str, ...] = MATCH_GRADE_LOCI[match_grade]
    recipient: dict[str, GenotypeList] = parse_gl_string(recipient_gl)
    donor: dict[str, GenotypeList] = parse_gl_string(donor_gl)

    for party, genotypes in (("recipient", recipient), ("donor", donor)):
        missing: list[str] = [locus for locus in panel if locus not in genotypes]
        if len(missing) > 0:
            raise IncompleteGenotype(
                f"The {party} is not typed at {', '.join(missing)}, "
                f"which {match_grade} requires"
            )

    records: list[MismatchRecord] = compare_genotypes(recipient, donor, panel)
    return sum(cast(int, record.for_direction(direction)) for record in records)


def match_summary_cases(
    recipient_gls: Sequence[Optional[str]],
    donor_gls: Sequence[Optional[str]],
    direction: str = "bidirectional",
    match_grade: str = "Xof8",
) -> list[CaseResult]:
    checked_direction: DIRECTION = check_direction(direction)
    checked_grade: MATCH_GRADE = check_match_grade(match_grade)
    return evaluate_cases(
        recipient_gls,
        donor_gls,
        lambda r, d: case_match_summary(r, d, checked_direction, checked_grade),
    )


def match_summary_hct(
    recipient_gl: Union[str, Sequence[str]],
    donor_gl: Union[str, Sequence[str]],
    direction: str = "bidirectional",
    match_grade: str = "Xof8",
) -> Union[int, list[int]]:
    """
    Total the mismatches over the loci of an HCT match grade.

    "Xof8" covers HLA-A, -B, -C and -DRB1; "Xof10" adds HLA-DQB1.  For the
    bidirectional direction, the larger of the HvG and GvH counts is taken at
    each locus before summing.

    :raises InvalidDirection: if direction is not a valid option
    :raises InvalidMatchGrade: if match_grade is not "Xof8" or "Xof10"
    :raises IncompleteGenotype: if either party is untyped at a locus in the
    panel
    :raises BatchMismatchError: for sequence inputs, once every case has been
    evaluated, if any of them failed
    """
    checked_direction: DIRECTION = check_direction(direction)
    checked_grade: MATCH_GRADE = check_match_grade(match_grade)

    if isinstance(recipient_gl, str) and isinstance(donor_gl, str):
        return case_match_summary(
            recipient_gl, donor_gl, checked_direction, checked_grade
        )
    if isinstance(recipient_gl, str) or isinstance(donor_gl, str):
        raise ValueError("Recipient and donor must both be strings or both sequences")

    return unwrap_results(
        match_summary_cases(recipient_gl, donor_gl, checked_direction, checked_grade)
    )
