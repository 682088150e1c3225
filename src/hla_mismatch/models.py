from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from .utils import (
    ALLELE_DELIMITER,
    AMBIGUITY_DELIMITER,
    DIRECTION,
    MismatchException,
    extract_locus,
)


class Genotype(BaseModel):
    """
    A resolved genotype at a single locus: one or two allele designations.

    One allele means the locus is homozygous by omission, i.e. only one allele
    was reported.
    """

    # Allows this to be hashable:
    model_config = ConfigDict(frozen=True)

    locus: str
    alleles: tuple[str, ...]

    @field_validator("alleles")
    @classmethod
    def one_or_two_alleles(cls, alleles: tuple[str, ...]) -> tuple[str, ...]:
        if not 1 <= len(alleles) <= 2:
            raise ValueError(
                f"A genotype must have one or two alleles (got {len(alleles)})"
            )
        return alleles

    @property
    def normalized(self) -> tuple[str, str]:
        """
        The genotype as exactly two allele slots.

        A single reported allele is duplicated, e.g. ("A*01:01",) becomes
        ("A*01:01", "A*01:01").
        """
        if len(self.alleles) == 1:
            return (self.alleles[0], self.alleles[0])
        return (self.alleles[0], self.alleles[1])

    def is_homozygous(self) -> bool:
        first, second = self.normalized
        return first == second

    @property
    def gl_string(self) -> str:
        return ALLELE_DELIMITER.join(self.alleles)

    def split_by_locus(self) -> dict[str, "Genotype"]:
        """
        Regroup the alleles by the locus named in each allele token.

        Multi-gene loci are sometimes reported in one block, e.g.
        "HLA-DRB3*02:02+HLA-DRB4*01:03"; this separates such a block into one
        genotype per gene.
        """
        by_locus: dict[str, list[str]] = {}
        for allele in self.alleles:
            by_locus.setdefault(extract_locus(allele), []).append(allele)
        return {
            locus: Genotype(locus=locus, alleles=tuple(alleles))
            for locus, alleles in by_locus.items()
        }


class GenotypeList(BaseModel):
    """
    The ordered candidate genotypes for one locus; the first is the primary
    interpretation.
    """

    model_config = ConfigDict(frozen=True)

    locus: str
    genotypes: tuple[Genotype, ...]

    @field_validator("genotypes")
    @classmethod
    def at_least_one_genotype(
        cls, genotypes: tuple[Genotype, ...]
    ) -> tuple[Genotype, ...]:
        if len(genotypes) == 0:
            raise ValueError("A genotype list must have at least one genotype")
        return genotypes

    @property
    def primary(self) -> Genotype:
        return self.genotypes[0]

    @property
    def remainder(self) -> tuple[Genotype, ...]:
        return self.genotypes[1:]

    def is_ambiguous(self) -> bool:
        return len(self.genotypes) > 1

    @property
    def gl_string(self) -> str:
        return AMBIGUITY_DELIMITER.join(g.gl_string for g in self.genotypes)


class MismatchRecord(BaseModel):
    """
    Mismatch counts at one locus for one recipient/donor pair.

    A count of None means there was no typing for this locus on one side (or
    both), which is not the same thing as zero mismatches.
    """

    locus: str
    hvg: Optional[int] = None
    gvh: Optional[int] = None

    @property
    def bidirectional(self) -> Optional[int]:
        if self.hvg is None and self.gvh is None:
            return None
        return max(x for x in (self.hvg, self.gvh) if x is not None)

    def for_direction(self, direction: DIRECTION) -> Optional[int]:
        if direction in ("HvG", "SOT"):
            return self.hvg
        elif direction == "GvH":
            return self.gvh
        return self.bidirectional


class CaseResult(BaseModel):
    """
    The outcome of one case in a batch: either a value or the error that
    prevented one from being computed.
    """

    # Allows MismatchException to be stored.
    model_config = ConfigDict(arbitrary_types_allowed=True)

    case: int
    value: Any = None
    error: Optional[MismatchException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_message(self) -> str:
        if self.error is None:
            return ""
        return f"{type(self.error).__name__}: {self.error}"
