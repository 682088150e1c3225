import logging
from pathlib import Path
from typing import Optional

import pandas as pd
import typer

from .settings import MismatchSettings
from .tabular import ERROR_COLUMN, match_summary_table, mismatch_table
from .utils import MismatchException

logging.basicConfig()
logger: logging.Logger = logging.getLogger(__name__)

app = typer.Typer(help="Compute HLA mismatches between recipients and donors.")


def set_verbosity(verbose: int) -> None:
    package_logger: logging.Logger = logging.getLogger("hla_mismatch")
    if verbose == 1:
        package_logger.setLevel(logging.INFO)
    elif verbose > 1:
        package_logger.setLevel(logging.DEBUG)


def load_settings(config: Optional[Path], **overrides) -> MismatchSettings:
    try:
        return MismatchSettings.use_config(
            None if config is None else str(config), **overrides
        )
    except ValueError as e:
        typer.echo(f"Invalid settings: {e}", err=True)
        raise typer.Exit(code=1)


def report(table: pd.DataFrame, output_file: Path) -> None:
    table.to_csv(output_file, index=False)
    failures: int = int((table[ERROR_COLUMN] != "").sum())
    logger.info(f"{len(table)} cases written to {output_file}; {failures} failed.")


INPUT_FILE_ARGUMENT = typer.Argument(
    ...,
    help="CSV file with one recipient/donor pair of GL strings per row.",
    dir_okay=False,
    file_okay=True,
    exists=True,
    readable=True,
)
CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="YAML settings file; command-line options take precedence.",
    dir_okay=False,
    exists=True,
    readable=True,
)
RECIPIENT_COLUMN_OPTION = typer.Option(
    None, "--recipient-column", help="Column holding recipient GL strings."
)
DONOR_COLUMN_OPTION = typer.Option(
    None, "--donor-column", help="Column holding donor GL strings."
)
CASE_COLUMN_OPTION = typer.Option(
    None, "--case-column", help="Column identifying each case, copied to the output."
)
DIRECTION_OPTION = typer.Option(
    None,
    "--direction",
    "-d",
    help="One of HvG, GvH, bidirectional, or SOT.",
)
VERBOSE_OPTION = typer.Option(
    0,
    "--verbose",
    "-v",
    count=True,
    help="Output status messages (and debug messages if -vv is used)",
)


@app.command()
def mismatch(
    input_file: Path = INPUT_FILE_ARGUMENT,
    output_file: Path = typer.Argument(
        "mismatches.csv",
        help="Output file in csv format.",
        dir_okay=False,
        file_okay=True,
        writable=True,
    ),
    loci: Optional[list[str]] = typer.Option(
        None,
        "--locus",
        "-l",
        help="Locus to compare; repeat for several (e.g. -l HLA-A -l HLA-DRB3/4/5).",
    ),
    direction: Optional[str] = DIRECTION_OPTION,
    homozygous_count: Optional[int] = typer.Option(
        None,
        "--homozygous-count",
        help="Count a homozygous mismatch as 1 or 2 mismatches.",
    ),
    recipient_column: Optional[str] = RECIPIENT_COLUMN_OPTION,
    donor_column: Optional[str] = DONOR_COLUMN_OPTION,
    case_column: Optional[str] = CASE_COLUMN_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    verbose: int = VERBOSE_OPTION,
) -> None:
    """
    Count mismatches at each requested locus.
    """
    set_verbosity(verbose)
    settings: MismatchSettings = load_settings(
        config,
        loci=loci or None,
        direction=direction,
        homozygous_count=homozygous_count,
        recipient_column=recipient_column,
        donor_column=donor_column,
        case_column=case_column,
    )

    logger.info(f"Reading cases from {input_file}....")
    data: pd.DataFrame = pd.read_csv(input_file, dtype=str)
    try:
        table: pd.DataFrame = mismatch_table(
            data,
            settings.recipient_column,
            settings.donor_column,
            settings.loci,
            settings.direction,
            settings.homozygous_count,
            settings.case_column,
        )
    except (MismatchException, KeyError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    report(table, output_file)


@app.command()
def summary(
    input_file: Path = INPUT_FILE_ARGUMENT,
    output_file: Path = typer.Argument(
        "match_summary.csv",
        help="Output file in csv format.",
        dir_okay=False,
        file_okay=True,
        writable=True,
    ),
    match_grade: Optional[str] = typer.Option(
        None, "--match-grade", "-g", help="Xof8 or Xof10."
    ),
    direction: Optional[str] = DIRECTION_OPTION,
    recipient_column: Optional[str] = RECIPIENT_COLUMN_OPTION,
    donor_column: Optional[str] = DONOR_COLUMN_OPTION,
    case_column: Optional[str] = CASE_COLUMN_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    verbose: int = VERBOSE_OPTION,
) -> None:
    """
    Total the mismatches over the Xof8 or Xof10 loci.
    """
    set_verbosity(verbose)
    settings: MismatchSettings = load_settings(
        config,
        match_grade=match_grade,
        direction=direction,
        recipient_column=recipient_column,
        donor_column=donor_column,
        case_column=case_column,
    )

    logger.info(f"Reading cases from {input_file}....")
    data: pd.DataFrame = pd.read_csv(input_file, dtype=str)
    try:
        table: pd.DataFrame = match_summary_table(
            data,
            settings.recipient_column,
            settings.donor_column,
            settings.direction,
            settings.match_grade,
            settings.case_column,
        )
    except (MismatchException, KeyError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    report(table, output_file)


def run():
    app()
