"""
Row-per-case, column-per-locus versions of the mismatch calculations.
"""

import logging
from collections.abc import Iterable
from functools import partial
from typing import Any, Optional, Union

import pandas as pd

from .mismatch import evaluate_cases, locus_mismatches
from .models import CaseResult
from .summary import match_summary_cases
from .utils import (
    DIRECTION,
    check_direction,
    check_homozygous_count,
    normalize_loci,
)

logger: logging.Logger = logging.getLogger(__name__)

ERROR_COLUMN: str = "error"


def _gl_strings(column: pd.Series) -> list[Optional[str]]:
    # Empty cells come through from pandas as NaN.
    return [x if isinstance(x, str) else None for x in column]


def _result_table(
    data: pd.DataFrame,
    results: list[CaseResult],
    value_columns: dict[str, Any],
    case_column: Optional[str],
) -> pd.DataFrame:
    columns: dict[str, Any] = {}
    if case_column is not None:
        columns[case_column] = data[case_column].to_list()
    columns.update(value_columns)
    columns[ERROR_COLUMN] = [x.error_message for x in results]

    failures: int = sum(1 for x in results if not x.ok)
    logger.info(f"{len(results)} cases evaluated; {failures} failed.")
    return pd.DataFrame(columns, index=data.index)


def mismatch_table(
    data: pd.DataFrame,
    recipient_column: str,
    donor_column: str,
    loci: Union[str, Iterable[str]],
    direction: str,
    homozygous_count: int = 2,
    case_column: Optional[str] = None,
) -> pd.DataFrame:
    """
    Compute mismatches for every row of a table of recipient/donor GL strings.

    The result has one row per input row (with the same index), one nullable
    integer column per requested locus, and an "error" column that's empty
    for every case that could be evaluated.  If case_column is specified, it's
    copied over as the first column.  Missing counts are left as <NA>.
    """
    checked_direction: DIRECTION = check_direction(direction)
    check_homozygous_count(homozygous_count)
    locus_list: list[str] = normalize_loci(loci)

    results: list[CaseResult] = evaluate_cases(
        _gl_strings(data[recipient_column]),
        _gl_strings(data[donor_column]),
        partial(
            locus_mismatches, loci=locus_list, homozygous_count=homozygous_count
        ),
    )

    locus_columns: dict[str, Any] = {
        locus: pd.array(
            [
                x.value[idx].for_direction(checked_direction) if x.ok else None
                for x in results
            ],
            dtype="Int64",
        )
        for idx, locus in enumerate(locus_list)
    }
    return _result_table(data, results, locus_columns, case_column)


def match_summary_table(
    data: pd.DataFrame,
    recipient_column: str,
    donor_column: str,
    direction: str = "bidirectional",
    match_grade: str = "Xof8",
    case_column: Optional[str] = None,
) -> pd.DataFrame:
    """
    Compute the match-grade total for every row of a table of GL strings.

    The totals go in a nullable integer column named after the match grade,
    e.g. "Xof8", alongside an "error" column as in `mismatch_table`.
    """
    results: list[CaseResult] = match_summary_cases(
        _gl_strings(data[recipient_column]),
        _gl_strings(data[donor_column]),
        direction,
        match_grade,
    )
    summary_column: dict[str, Any] = {
        match_grade: pd.array(
            [x.value if x.ok else None for x in results], dtype="Int64"
        )
    }
    return _result_table(data, results, summary_column, case_column)
