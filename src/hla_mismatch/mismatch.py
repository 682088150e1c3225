import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any, Optional, Union

from .gl_string import parse_gl_string, resolve_ambiguity
from .models import CaseResult, Genotype, GenotypeList, MismatchRecord
from .utils import (
    DIRECTION,
    MalformedInput,
    MismatchException,
    check_batch_lengths,
    check_direction,
    check_homozygous_count,
    expand_loci,
    normalize_loci,
)

logger: logging.Logger = logging.getLogger(__name__)


class BatchMismatchError(MismatchException):
    """
    Raised after a batch has been fully evaluated if any of its cases failed.

    `results` holds the outcome of every case, in input order, so the cases
    that succeeded are not lost.
    """

    def __init__(self, results: list[CaseResult]):
        self.results: list[CaseResult] = results
        self.failures: list[CaseResult] = [x for x in results if not x.ok]
        super().__init__(
            f"{len(self.failures)} of {len(results)} cases could not be evaluated"
        )


def mismatch_count(
    recipient: Optional[Genotype],
    donor: Optional[Genotype],
    direction: str,
    homozygous_count: int = 2,
) -> Optional[int]:
    """
    Count the mismatches between two genotypes at a single locus.

    For host-vs-graft (HvG, or SOT), the donor's alleles are examined: each
    one that isn't matched by one of the recipient's alleles is a mismatch.
    Graft-vs-host (GvH) is the reverse.  Alleles are matched one-to-one by
    exact designation, so a donor carrying two copies of an allele the
    recipient has only once has one mismatch.

    Both genotypes are first brought to two alleles, duplicating a lone
    allele.  If the examined side is homozygous for an allele the other side
    lacks entirely, it counts as 2 mismatches, or 1 if homozygous_count is 1.

    :return: 0, 1, or 2; None if either genotype is missing
    :rtype: Optional[int]
    """
    direction = check_direction(direction)
    check_homozygous_count(homozygous_count)
    if direction == "bidirectional":
        return bidirectional_count(
            mismatch_count(recipient, donor, "HvG", homozygous_count),
            mismatch_count(recipient, donor, "GvH", homozygous_count),
        )

    if recipient is None or donor is None:
        return None

    examined: Genotype
    other: Genotype
    if direction in ("HvG", "SOT"):
        examined, other = donor, recipient
    else:
        examined, other = recipient, donor

    unmatched: list[str] = list(other.normalized)
    mismatches: int = 0
    for allele in examined.normalized:
        if allele in unmatched:
            unmatched.remove(allele)
        else:
            mismatches += 1

    if (
        homozygous_count == 1
        and examined.is_homozygous()
        and examined.normalized[0] not in other.normalized
    ):
        return 1
    return mismatches


def bidirectional_count(hvg: Optional[int], gvh: Optional[int]) -> Optional[int]:
    return MismatchRecord(locus="", hvg=hvg, gvh=gvh).bidirectional


def sum_counts(counts: Iterable[Optional[int]]) -> Optional[int]:
    """
    Add up mismatch counts, ignoring missing ones.

    If every count is missing, so is the total.
    """
    present: list[int] = [x for x in counts if x is not None]
    if len(present) == 0:
        return None
    return sum(present)


def locus_genotypes(
    genotypes: dict[str, GenotypeList],
    locus: str,
) -> dict[str, Genotype]:
    """
    Retrieve the primary genotypes for the gene(s) that make up a locus.

    For an ordinary locus this is just its primary genotype.  For a grouped
    locus such as "HLA-DRB3/4/5", each member's block is resolved and its
    alleles are regrouped by the locus named in each allele, as a block like
    "HLA-DRB3*02:02+HLA-DRB4*01:03" carries more than one gene.
    """
    members: tuple[str, ...] = expand_loci(locus)
    if len(members) == 1:
        if locus not in genotypes:
            return {}
        primary, _ = resolve_ambiguity(genotypes[locus])
        return {locus: primary}

    alleles_by_gene: dict[str, list[str]] = {}
    for member in members:
        if member not in genotypes:
            continue
        primary, _ = resolve_ambiguity(genotypes[member])
        for gene, gene_genotype in primary.split_by_locus().items():
            if gene not in members:
                logger.warning(
                    f"Ignoring {gene_genotype.gl_string}, which is not part of {locus}"
                )
                continue
            alleles_by_gene.setdefault(gene, []).extend(gene_genotype.alleles)

    result: dict[str, Genotype] = {}
    for gene, alleles in alleles_by_gene.items():
        if len(alleles) > 2:
            raise MalformedInput(f"{gene} has more than two alleles")
        result[gene] = Genotype(locus=gene, alleles=tuple(alleles))
    logger.debug(f"{locus} resolved to genes {', '.join(result)}")
    return result


def compare_genotypes(
    recipient: dict[str, GenotypeList],
    donor: dict[str, GenotypeList],
    loci: Iterable[str],
    homozygous_count: int = 2,
) -> list[MismatchRecord]:
    """
    Compute the mismatch record for each of the specified loci.

    The members of a grouped locus are compared independently and their
    counts summed, separately for each direction.
    """
    records: list[MismatchRecord] = []
    for locus in loci:
        recipient_genes: dict[str, Genotype] = locus_genotypes(recipient, locus)
        donor_genes: dict[str, Genotype] = locus_genotypes(donor, locus)
        members: tuple[str, ...] = expand_loci(locus)
        records.append(
            MismatchRecord(
                locus=locus,
                hvg=sum_counts(
                    mismatch_count(
                        recipient_genes.get(gene),
                        donor_genes.get(gene),
                        "HvG",
                        homozygous_count,
                    )
                    for gene in members
                ),
                gvh=sum_counts(
                    mismatch_count(
                        recipient_genes.get(gene),
                        donor_genes.get(gene),
                        "GvH",
                        homozygous_count,
                    )
                    for gene in members
                ),
            )
        )
    return records


def locus_mismatches(
    recipient_gl: Optional[str],
    donor_gl: Optional[str],
    loci: Union[str, Iterable[str]],
    homozygous_count: int = 2,
) -> list[MismatchRecord]:
    """
    Compute HvG and GvH mismatches for one recipient/donor pair.
    """
    check_homozygous_count(homozygous_count)
    locus_list: list[str] = normalize_loci(loci)
    return compare_genotypes(
        parse_gl_string(recipient_gl),
        parse_gl_string(donor_gl),
        locus_list,
        homozygous_count,
    )


def format_mismatches(records: Iterable[MismatchRecord], direction: DIRECTION) -> str:
    """
    Render mismatch records as "HLA-A=1, HLA-B=0".

    A missing count is rendered with nothing after the "=".  This is the only
    place a missing count is turned into text.
    """
    parts: list[str] = []
    for record in records:
        count: Optional[int] = record.for_direction(direction)
        parts.append(f"{record.locus}={'' if count is None else count}")
    return ", ".join(parts)


def case_mismatch_number(
    recipient_gl: Optional[str],
    donor_gl: Optional[str],
    loci: list[str],
    direction: DIRECTION,
    homozygous_count: int = 2,
) -> Union[Optional[int], str]:
    records: list[MismatchRecord] = locus_mismatches(
        recipient_gl, donor_gl, loci, homozygous_count
    )
    if len(loci) == 1:
        return records[0].for_direction(direction)
    return format_mismatches(records, direction)


def evaluate_cases(
    recipient_gls: Sequence[Optional[str]],
    donor_gls: Sequence[Optional[str]],
    evaluate: Callable[[Optional[str], Optional[str]], Any],
) -> list[CaseResult]:
    """
    Evaluate each recipient/donor pair independently.

    A case that raises a MismatchException has the error recorded in its
    result; the remaining cases are still evaluated.  Results are in input
    order.
    """
    check_batch_lengths(recipient_gls, donor_gls)
    results: list[CaseResult] = []
    for case, (recipient_gl, donor_gl) in enumerate(zip(recipient_gls, donor_gls)):
        try:
            value: Any = evaluate(recipient_gl, donor_gl)
        except MismatchException as e:
            logger.warning(f"Case {case} could not be evaluated: {e}")
            results.append(CaseResult(case=case, error=e))
            continue
        results.append(CaseResult(case=case, value=value))
    return results


def unwrap_results(results: list[CaseResult]) -> list[Any]:
    """
    Return the value of each case.

    :raises BatchMismatchError: if any case failed
    """
    if any(not x.ok for x in results):
        raise BatchMismatchError(results)
    return [x.value for x in results]


def mismatch_number_cases(
    recipient_gls: Sequence[Optional[str]],
    donor_gls: Sequence[Optional[str]],
    loci: Union[str, Iterable[str]],
    direction: str,
    homozygous_count: int = 2,
) -> list[CaseResult]:
    """
    The batch form of `mismatch_number` that never raises on a per-case error.
    """
    checked_direction: DIRECTION = check_direction(direction)
    check_homozygous_count(homozygous_count)
    locus_list: list[str] = normalize_loci(loci)
    return evaluate_cases(
        recipient_gls,
        donor_gls,
        lambda r, d: case_mismatch_number(
            r, d, locus_list, checked_direction, homozygous_count
        ),
    )


def mismatch_number(
    recipient_gl: Union[str, Sequence[str]],
    donor_gl: Union[str, Sequence[str]],
    loci: Union[str, Iterable[str]],
    direction: str,
    homozygous_count: int = 2,
) -> Union[Optional[int], str, list[Union[Optional[int], str]]]:
    """
    Calculate the number of mismatched HLA alleles between recipient and donor.

    :param recipient_gl: the recipient's GL string, or a sequence of them
    :param donor_gl: the donor's GL string, or a sequence of the same length
    :param loci: the loci to compare; grouped loci are requested as
    "HLA-DRB3/4/5" or "HLA-DR51/52/53"
    :param direction: "HvG", "GvH", "bidirectional" (the larger of the two),
    or "SOT" (the same as "HvG")
    :param homozygous_count: whether a homozygous mismatch counts as 2 or 1
    :raises InvalidDirection: before any GL string is looked at
    :raises BatchMismatchError: for sequence inputs, once every case has been
    evaluated, if any of them failed
    :return: for one locus, the mismatch count (None if either side is untyped
    at that locus); for several, a string like "HLA-A=1, HLA-B=0".  For
    sequence inputs, a list of these in case order.
    """
    checked_direction: DIRECTION = check_direction(direction)
    check_homozygous_count(homozygous_count)
    locus_list: list[str] = normalize_loci(loci)

    if isinstance(recipient_gl, str) and isinstance(donor_gl, str):
        return case_mismatch_number(
            recipient_gl, donor_gl, locus_list, checked_direction, homozygous_count
        )
    if isinstance(recipient_gl, str) or isinstance(donor_gl, str):
        raise ValueError("Recipient and donor must both be strings or both sequences")

    return unwrap_results(
        mismatch_number_cases(
            recipient_gl, donor_gl, locus_list, checked_direction, homozygous_count
        )
    )
