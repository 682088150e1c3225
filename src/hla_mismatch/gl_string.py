import logging
from collections.abc import Iterable, Sequence
from typing import Optional, Union

import pandas as pd

from .models import Genotype, GenotypeList
from .utils import (
    ALLELE_DELIMITER,
    AMBIGUITY_DELIMITER,
    LOCUS_ALLELE_SEPARATOR,
    LOCUS_DELIMITER,
    MalformedInput,
    UnexpectedDelimiter,
    extract_locus,
)

logger: logging.Logger = logging.getLogger(__name__)


def parse_genotype(genotype_str: str, locus: Optional[str] = None) -> Genotype:
    """
    Parse a single genotype interpretation, e.g. "HLA-A*01:01+HLA-A*02:01".

    :param genotype_str: one or two allele tokens joined by "+"
    :type genotype_str: str
    :param locus: the locus this genotype belongs to; if not specified, it's
    taken from the first allele token
    :type locus: Optional[str]
    :raises MalformedInput: if an allele token is empty, has no "*", or has no
    locus name, or if there are more than two alleles
    :return: the parsed genotype
    :rtype: Genotype
    """
    alleles: list[str] = [x.strip() for x in genotype_str.split(ALLELE_DELIMITER)]
    for allele in alleles:
        if LOCUS_ALLELE_SEPARATOR not in allele:
            raise MalformedInput(f'Allele "{allele}" in "{genotype_str}" has no "*"')
        extract_locus(allele)
    if len(alleles) > 2:
        raise MalformedInput(
            f'Genotype "{genotype_str}" has {len(alleles)} alleles (at most 2 allowed)'
        )
    if locus is None:
        locus = extract_locus(alleles[0])
    return Genotype(locus=locus, alleles=tuple(alleles))


def parse_genotype_list(block: str) -> GenotypeList:
    """
    Parse one locus block into its ordered list of candidate genotypes.

    Candidates are separated by "|"; their order is preserved, so the first
    one is the primary interpretation.
    """
    block = block.strip()
    if block == "":
        raise MalformedInput("Empty locus block in GL string")
    locus: str = extract_locus(block)
    return GenotypeList(
        locus=locus,
        genotypes=tuple(
            parse_genotype(candidate, locus)
            for candidate in block.split(AMBIGUITY_DELIMITER)
        ),
    )


def parse_gl_string(gl_string: Optional[str]) -> dict[str, GenotypeList]:
    """
    Parse a GL string into its locus blocks.

    The result maps each locus name to the ambiguity list typed at that locus;
    untyped loci are simply absent.

    :raises MalformedInput: if the GL string is empty or violates the
    delimiter grammar, or if a locus appears in more than one block
    """
    if gl_string is None or gl_string.strip() == "":
        raise MalformedInput("GL string is empty")

    genotypes: dict[str, GenotypeList] = {}
    for block in gl_string.split(LOCUS_DELIMITER):
        genotype_list: GenotypeList = parse_genotype_list(block)
        if genotype_list.locus in genotypes:
            raise MalformedInput(
                f"Locus {genotype_list.locus} appears more than once in the GL string"
            )
        genotypes[genotype_list.locus] = genotype_list

    logger.debug(f"Parsed loci {', '.join(genotypes)} from GL string")
    return genotypes


def resolve_ambiguity(
    candidates: Union[str, GenotypeList, Sequence[Genotype]],
    keep_remainder: bool = False,
) -> tuple[Genotype, Optional[str]]:
    """
    Reduce an ambiguity list to its primary genotype.

    The primary genotype is always the first candidate; no attempt is made to
    pick a "better" one.  If keep_remainder is True, the other candidates are
    returned as a "|"-joined GL string (or None if there are none).

    :param candidates: the candidates for a single locus, either already
    parsed or as the text of a single locus block
    :raises UnexpectedDelimiter: if the text still contains a "^", i.e. the
    loci haven't been separated yet
    :raises MalformedInput: if there are no candidates
    """
    genotype_list: GenotypeList
    if isinstance(candidates, str):
        if LOCUS_DELIMITER in candidates:
            raise UnexpectedDelimiter(
                f'"{LOCUS_DELIMITER}" found in "{candidates}"; separate the loci '
                f"before resolving ambiguity"
            )
        genotype_list = parse_genotype_list(candidates)
    elif isinstance(candidates, GenotypeList):
        genotype_list = candidates
    else:
        genotypes: tuple[Genotype, ...] = tuple(candidates)
        if len(genotypes) == 0:
            raise MalformedInput("No candidate genotypes to resolve")
        genotype_list = GenotypeList(locus=genotypes[0].locus, genotypes=genotypes)

    remainder: Optional[str] = None
    if keep_remainder and genotype_list.is_ambiguous():
        remainder = AMBIGUITY_DELIMITER.join(
            g.gl_string for g in genotype_list.remainder
        )
    return genotype_list.primary, remainder


def repair_column_name(locus: str) -> str:
    """
    Make a locus name usable as a column name, e.g. "HLA-A" becomes "HLA_A".
    """
    return locus.replace("-", "_")


def gl_string_genes(data: pd.DataFrame, gl_string_column: str) -> pd.DataFrame:
    """
    Separate a column of GL strings into one column per locus.

    Every other column is retained, as is the row order.  Locus columns are
    named as per `repair_column_name` and appear in the order they're first
    seen.  Rows with no GL string get no locus columns filled in.
    """
    other_columns: list[str] = [c for c in data.columns if c != gl_string_column]

    rows: list[dict[str, object]] = []
    for _, row in data.iterrows():
        new_row: dict[str, object] = {c: row[c] for c in other_columns}
        gl_string: object = row[gl_string_column]
        if isinstance(gl_string, str):
            for block in gl_string.split(LOCUS_DELIMITER):
                block = block.strip()
                new_row[repair_column_name(extract_locus(block))] = block
        rows.append(new_row)

    return pd.DataFrame(rows, index=data.index)


def gl_string_gene_copies_combine(
    data: pd.DataFrame,
    columns: Iterable[str],
    sample_column: str = "sample",
) -> pd.DataFrame:
    """
    Combine the typing columns for each locus into a single GL string column.

    For example, columns "A1" and "A2" holding "HLA-A*01:01" and
    "HLA-A*02:01" become one column "HLA_A" holding
    "HLA-A*01:01+HLA-A*02:01".  The locus is taken from each allele, so the
    names of the original columns don't matter.  Empty cells, and cells that
    don't hold an "HLA-" allele, are skipped.
    """
    long_data: pd.DataFrame = data.melt(
        id_vars=[sample_column],
        value_vars=list(columns),
        value_name="allele",
    ).dropna(subset=["allele"])
    long_data["allele"] = long_data["allele"].astype(str).str.strip()
    long_data["locus"] = long_data["allele"].str.extract(
        r"(HLA-[A-Za-z0-9]+)", expand=False
    )
    long_data = long_data.dropna(subset=["locus"])

    combined: pd.DataFrame = (
        long_data.groupby([sample_column, "locus"], sort=False)["allele"]
        .agg(ALLELE_DELIMITER.join)
        .reset_index()
    )
    wide: pd.DataFrame = combined.pivot(
        index=sample_column, columns="locus", values="allele"
    ).reindex(
        index=long_data[sample_column].unique(),
        columns=long_data["locus"].unique(),
    )
    wide.columns = [repair_column_name(locus) for locus in wide.columns]
    wide.index.name = sample_column
    return wide.reset_index()
