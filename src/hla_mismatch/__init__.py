from ._version import __version__
from .gl_string import parse_gl_string, resolve_ambiguity
from .mismatch import BatchMismatchError, mismatch_count, mismatch_number
from .summary import match_summary_hct
from .utils import (
    IncompleteGenotype,
    InvalidDirection,
    InvalidMatchGrade,
    MalformedInput,
    MismatchException,
    UnexpectedDelimiter,
)
