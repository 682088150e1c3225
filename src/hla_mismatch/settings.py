import os
from io import TextIOBase
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .utils import (
    DIRECTION,
    HOMOZYGOUS_COUNT,
    MATCH_GRADE,
    MATCH_GRADE_LOCI,
    normalize_loci,
)


def _default_direction() -> str:
    return os.environ.get("HLA_MISMATCH_DIRECTION", "bidirectional")


def _default_homozygous_count() -> int:
    return int(os.environ.get("HLA_MISMATCH_HOMOZYGOUS_COUNT", "2"))


class MismatchSettings(BaseModel):
    """
    Settings for a mismatch run.

    Direction and homozygous count default to the environment variables
    HLA_MISMATCH_DIRECTION and HLA_MISMATCH_HOMOZYGOUS_COUNT if they're set.
    """

    # Make sure the environment defaults are validated too.
    model_config = ConfigDict(validate_default=True)

    loci: list[str] = Field(default_factory=lambda: list(MATCH_GRADE_LOCI["Xof8"]))
    direction: DIRECTION = Field(default_factory=_default_direction)
    homozygous_count: HOMOZYGOUS_COUNT = Field(
        default_factory=_default_homozygous_count
    )
    match_grade: MATCH_GRADE = "Xof8"
    recipient_column: str = "recipient"
    donor_column: str = "donor"
    case_column: Optional[str] = None

    @field_validator("loci")
    @classmethod
    def check_loci(cls, v: list[str]) -> list[str]:
        return normalize_loci(v)

    @classmethod
    def read(cls, settings_io: TextIOBase) -> "MismatchSettings":
        """
        Read settings from a YAML file-like object.

        Keys that are absent take their defaults.
        """
        return cls.model_validate(yaml.safe_load(settings_io) or {})

    @classmethod
    def use_config(
        cls,
        settings_path: Optional[str] = None,
        **overrides: Any,
    ) -> "MismatchSettings":
        """
        An alternate constructor that reads the specified YAML file (if any)
        and then applies any overrides that aren't None.
        """
        base: dict[str, Any] = {}
        if settings_path is not None:
            with open(settings_path) as f:
                base = cls.read(f).model_dump()
        base.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(base)
