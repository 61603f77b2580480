"""
Command-line interface for the hfmeds toolkit.

Looks up and localizes key-point messages for a category combination,
and audits the key-point table (validity and coverage).
"""

import logging
import os
import sys
import typing

import click

from .categories import DizzinessCategory, MedicationCategory, SymptomScoreCategory, WeightCategory
from .keypoints import KeyPointTableError, coverage_report, key_point_table, localized_key_points

NO_KEY_POINTS = "No key points available."


def _category_option(flag: str, long_flag: str, name: str, category: type):
    return click.option(
        flag,
        long_flag,
        name,
        required=True,
        type=click.Choice([member.value for member in category]),
        callback=lambda ctx, param, value: category.from_label(value),
        help=f"{category.__name__} label",
    )


_table_option = click.option(
    "-t",
    "--table",
    "table_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="path to a key-point CSV (defaults to $HFMEDS_KEY_POINTS_PATH, then the packaged table)",
)


@click.group()
@click.option("--verbose", is_flag=True, help="Show debug logging on stderr")
@click.option(
    "--log-file",
    default=None,
    type=click.Path(dir_okay=False),
    help="also append log records to this file",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, log_file: typing.Optional[str]):
    """hfmeds: daily doses and key-point messaging for heart-failure medication."""
    handlers = _configure_logging(verbose, log_file)
    ctx.call_on_close(lambda: _release_logging(handlers))


@main.command(name="key-points")
@_category_option("-m", "--medication", "medication", MedicationCategory)
@_category_option("-s", "--symptom-score", "symptom_score", SymptomScoreCategory)
@_category_option("-d", "--dizziness", "dizziness", DizzinessCategory)
@_category_option("-w", "--weight", "weight", WeightCategory)
@click.option(
    "-l",
    "--language",
    "languages",
    multiple=True,
    help="preferred language tag, repeatable (defaults to $HFMEDS_LANGUAGES)",
)
@_table_option
def key_points(
    medication: MedicationCategory,
    symptom_score: SymptomScoreCategory,
    dizziness: DizzinessCategory,
    weight: WeightCategory,
    languages: typing.Tuple[str, ...],
    table_path: typing.Optional[str],
):
    """
    Print the ordered key points for one category combination.
    """
    table = _load_table(table_path)
    texts = localized_key_points(
        medication,
        symptom_score,
        dizziness,
        weight,
        *(languages or _default_languages()),
        table=table,
    )
    if texts is None:
        click.echo(NO_KEY_POINTS)
        return
    for index, text in enumerate(texts, start=1):
        click.echo(f"{index}.) {text}")


@main.command(name="coverage")
@_table_option
def coverage(table_path: typing.Optional[str]):
    """
    List the category combinations that have no authored key points.
    """
    report = coverage_report(_load_table(table_path))
    click.echo(f"Authored: {report.authored} of {report.total} combinations")
    click.echo(f"Unauthored: {len(report.unauthored)}")
    for key in report.unauthored:
        click.echo("- " + ", ".join(category.value for category in key))


@main.command(name="check-table")
@_table_option
def check_table(table_path: typing.Optional[str]):
    """
    Validate a key-point table and report its entry count.
    """
    table = _load_table(table_path)
    click.echo(f"Key-point table OK: {len(table)} entries")


def _configure_logging(verbose: bool, log_file: typing.Optional[str]) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )
    return handlers


def _release_logging(handlers: list[logging.Handler]) -> None:
    # detach and close what _configure_logging attached to the root logger
    root = logging.getLogger()
    for handler in handlers:
        root.removeHandler(handler)
        handler.close()


def _default_languages() -> list[str]:
    raw = os.getenv("HFMEDS_LANGUAGES", "")
    return [language.strip() for language in raw.split(",") if language.strip()]


def _load_table(table_path: typing.Optional[str]):
    try:
        return key_point_table(table_path)
    except KeyPointTableError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
