import re
from collections.abc import Iterable, Sequence
from typing import Final, Literal, cast

# GL string delimiters, from coarsest to finest.
LOCUS_DELIMITER: Final[str] = "^"
AMBIGUITY_DELIMITER: Final[str] = "|"
ALLELE_DELIMITER: Final[str] = "+"
LOCUS_ALLELE_SEPARATOR: Final[str] = "*"

# The locus name is the run of alphanumerics and hyphens immediately preceding
# the first "*" in a block, e.g. "HLA-DRB1" in "HLA-DRB1*15:01+HLA-DRB1*04:01".
LOCUS_REGEX: Final[re.Pattern] = re.compile(r"[A-Za-z0-9-]+(?=\*)")

DIRECTION = Literal["HvG", "GvH", "bidirectional", "SOT"]
DIRECTIONS: Final[tuple[str, ...]] = ("HvG", "GvH", "bidirectional", "SOT")

MATCH_GRADE = Literal["Xof8", "Xof10"]
MATCH_GRADES: Final[tuple[str, ...]] = ("Xof8", "Xof10")

HOMOZYGOUS_COUNT = Literal[1, 2]

# Loci that are matched as a single logical locus.  The serologic names
# (DR51/52/53) are an alias of the molecular ones (DRB3/4/5).
GROUPED_LOCI: Final[dict[str, tuple[str, ...]]] = {
    "HLA-DRB3/4/5": ("HLA-DRB3", "HLA-DRB4", "HLA-DRB5"),
    "HLA-DR51/52/53": ("HLA-DR51", "HLA-DR52", "HLA-DR53"),
}

MATCH_GRADE_LOCI: Final[dict[str, tuple[str, ...]]] = {
    "Xof8": ("HLA-A", "HLA-B", "HLA-C", "HLA-DRB1"),
    "Xof10": ("HLA-A", "HLA-B", "HLA-C", "HLA-DRB1", "HLA-DQB1"),
}


class MismatchException(Exception):
    pass


class MalformedInput(MismatchException):
    pass


class UnexpectedDelimiter(MismatchException):
    pass


class IncompleteGenotype(MismatchException):
    pass


class InvalidDirection(MismatchException):
    pass


class InvalidMatchGrade(MismatchException):
    pass


def check_direction(direction: str) -> DIRECTION:
    """
    Check that the direction is one of the supported options.

    :raises InvalidDirection: if it isn't
    """
    if direction not in DIRECTIONS:
        raise InvalidDirection(
            f'Direction "{direction}" is not one of {", ".join(DIRECTIONS)}'
        )
    return cast(DIRECTION, direction)


def check_match_grade(match_grade: str) -> MATCH_GRADE:
    if match_grade not in MATCH_GRADES:
        raise InvalidMatchGrade(
            f'Match grade "{match_grade}" is not one of {", ".join(MATCH_GRADES)}'
        )
    return cast(MATCH_GRADE, match_grade)


def check_homozygous_count(homozygous_count: int) -> HOMOZYGOUS_COUNT:
    if homozygous_count not in (1, 2):
        raise ValueError("homozygous_count must be 1 or 2")
    return cast(HOMOZYGOUS_COUNT, homozygous_count)


def extract_locus(text: str) -> str:
    """
    Extract the locus name from a GL string block or allele token.

    For example, "HLA-A*01:01+HLA-A*02:01" gives "HLA-A".

    :raises MalformedInput: if no locus name precedes a "*"
    """
    match: re.Match | None = LOCUS_REGEX.search(text)
    if match is None:
        raise MalformedInput(f'Could not find a locus name in "{text}"')
    return match.group(0)


def expand_loci(locus: str) -> tuple[str, ...]:
    """
    Return the physical loci that make up the specified locus.

    A grouped locus such as "HLA-DRB3/4/5" expands to its members; any other
    locus is returned on its own.
    """
    return GROUPED_LOCI.get(locus, (locus,))


def normalize_loci(loci: str | Iterable[str]) -> list[str]:
    """
    Accept either a single locus name or a collection of them.

    :raises ValueError: if no loci are specified, or a locus is repeated
    """
    locus_list: list[str]
    if isinstance(loci, str):
        locus_list = [loci]
    else:
        locus_list = list(loci)
    if len(locus_list) == 0:
        raise ValueError("At least one locus must be specified")
    repeated: list[str] = sorted(
        {locus for locus in locus_list if locus_list.count(locus) > 1}
    )
    if len(repeated) > 0:
        raise ValueError(f"Loci may only be specified once: {', '.join(repeated)}")
    return locus_list


def check_batch_lengths(recipients: Sequence[str], donors: Sequence[str]) -> None:
    if len(recipients) != len(donors):
        raise ValueError(
            f"Recipient and donor inputs must be the same length "
            f"({len(recipients)} != {len(donors)})"
        )
