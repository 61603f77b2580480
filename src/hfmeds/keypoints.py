"""
Key-point decision table.

Maps the exact 4-tuple (medication, symptom score, dizziness, weight) to
an ordered list of localized message fragments. The table is a data file
loaded once; lookups never fall back to partial matches.

Loading process:
1) read the CSV and normalize its headers (loader.load_table)
2) parse each row's four category labels and its text fragments
3) collect every problem in a Notepad (unknown labels, empty texts,
   misaligned translations, duplicate keys)
4) raise KeyPointTableError listing all problems, or return the entries
"""

from __future__ import annotations

import itertools
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Sequence

import pandas as pd
from stairval.notepad import Notepad, create_notepad

from .categories import DizzinessCategory, MedicationCategory, SymptomScoreCategory, WeightCategory
from .loader import key_points_path, load_table
from .localization import LocalizedText, localize

logger = logging.getLogger(__name__)

CATEGORY_COLUMNS = (
    ("medication", MedicationCategory),
    ("symptom_score", SymptomScoreCategory),
    ("dizziness", DizzinessCategory),
    ("weight", WeightCategory),
)
REQUIRED_LANGUAGE = "en"
REQUIRED_COLUMNS = {name for name, _ in CATEGORY_COLUMNS} | {REQUIRED_LANGUAGE}

# "1.) " style ordinal markers in front of a fragment
_ORDINAL_PREFIX = re.compile(r"^\s*\d+\.\)\s*")
_WHITESPACE = re.compile(r"\s+")

KeyPointKey = tuple[MedicationCategory, SymptomScoreCategory, DizzinessCategory, WeightCategory]


class KeyPointTableError(ValueError):
    """Raised when the key-point table file is malformed."""


@dataclass(frozen=True)
class KeyPointEntry:
    medication: MedicationCategory
    symptom_score: SymptomScoreCategory
    dizziness: DizzinessCategory
    weight: WeightCategory
    texts: tuple[LocalizedText, ...]

    @property
    def key(self) -> KeyPointKey:
        return (self.medication, self.symptom_score, self.dizziness, self.weight)


@dataclass(frozen=True)
class CoverageReport:
    authored: int
    unauthored: tuple[KeyPointKey, ...]

    @property
    def total(self) -> int:
        return self.authored + len(self.unauthored)


def split_fragments(cell: str) -> list[str]:
    """
    Split one table cell into its ordered fragments.
    Example: "1.) Take meds.\n2.) Weigh   daily." -> ["Take meds.", "Weigh daily."]
    """
    fragments = []
    for line in str(cell).splitlines():
        text = _WHITESPACE.sub(" ", _ORDINAL_PREFIX.sub("", line)).strip()
        if text:
            fragments.append(text)
    return fragments


def parse_key_points(df: pd.DataFrame, notepad: Notepad) -> list[KeyPointEntry]:
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        notepad.add_error(f"Key-point table: missing required columns: {sorted(missing)}")
        return []

    languages = [column for column in df.columns if column not in {name for name, _ in CATEGORY_COLUMNS}]
    entries: list[KeyPointEntry] = []
    seen: dict[KeyPointKey, int] = {}

    # row numbers as in the file: header is line 1
    for row_number, (_, row) in enumerate(df.iterrows(), start=2):
        entry = _parse_row(row, row_number, languages, notepad)
        if entry is None:
            continue
        if entry.key in seen:
            notepad.add_error(
                f"Row {row_number}: duplicate key {_format_key(entry.key)} "
                f"(first defined in row {seen[entry.key]})"
            )
            continue
        seen[entry.key] = row_number
        entries.append(entry)
    return entries


def _parse_row(row: pd.Series, row_number: int, languages: Sequence[str], notepad: Notepad) -> Optional[KeyPointEntry]:
    categories = []
    for column, category in CATEGORY_COLUMNS:
        try:
            categories.append(category.from_label(row[column]))
        except ValueError as e:
            notepad.add_error(f"Row {row_number}: {e}")
    if len(categories) != len(CATEGORY_COLUMNS):
        return None

    fragments = {_language_tag(language): split_fragments(row[language]) for language in languages}
    fragments = {language: texts for language, texts in fragments.items() if texts}
    english = fragments.get(REQUIRED_LANGUAGE, [])
    if not english:
        notepad.add_error(f"Row {row_number}: no {REQUIRED_LANGUAGE!r} text")
        return None

    for language, texts in fragments.items():
        if len(texts) != len(english):
            notepad.add_error(
                f"Row {row_number}: {language!r} has {len(texts)} fragment(s), "
                f"{REQUIRED_LANGUAGE!r} has {len(english)}"
            )
            return None

    texts = tuple(
        LocalizedText({language: fragments[language][index] for language in fragments})
        for index in range(len(english))
    )
    return KeyPointEntry(*categories, texts=texts)


def _language_tag(column: str) -> str:
    # headers are lower-cased by the loader: 'pt_br' / 'pt-br' -> 'pt-BR'
    language, _, region = column.replace("_", "-").partition("-")
    return f"{language}-{region.upper()}" if region else language


def _format_key(key: KeyPointKey) -> str:
    return "(" + ", ".join(category.value for category in key) + ")"


def read_key_points(path: str) -> tuple[KeyPointEntry, ...]:
    """Load and validate a key-point table file."""
    notepad = create_notepad("key-points")
    entries = parse_key_points(load_table(path), notepad)
    if notepad.has_errors(include_subsections=True):
        messages = [issue.message for issue in notepad.errors()]
        raise KeyPointTableError(f"Invalid key-point table {path!r}:\n" + "\n".join(messages))
    for issue in notepad.warnings():
        logger.warning(issue.message)
    logger.debug(f"Loaded {len(entries)} key-point entries from {path}")
    return tuple(entries)


def key_point_table(path: Optional[str] = None) -> tuple[KeyPointEntry, ...]:
    """The key-point table, loaded on first use and shared afterwards."""
    return _cached_table(path or key_points_path())


@lru_cache(maxsize=None)
def _cached_table(path: str) -> tuple[KeyPointEntry, ...]:
    return read_key_points(path)


def lookup(
    medication: MedicationCategory,
    symptom_score: SymptomScoreCategory,
    dizziness: DizzinessCategory,
    weight: WeightCategory,
    table: Optional[Sequence[KeyPointEntry]] = None,
) -> Optional[tuple[LocalizedText, ...]]:
    """
    Ordered texts for the exact category combination, or None when the
    combination is not authored (show no key point this cycle).
    """
    entries = key_point_table() if table is None else table
    key = (medication, symptom_score, dizziness, weight)
    for entry in entries:
        if entry.key == key:
            return entry.texts
    return None


def localized_key_points(
    medication: MedicationCategory,
    symptom_score: SymptomScoreCategory,
    dizziness: DizzinessCategory,
    weight: WeightCategory,
    *languages: str,
    table: Optional[Sequence[KeyPointEntry]] = None,
) -> Optional[list[str]]:
    texts = lookup(medication, symptom_score, dizziness, weight, table=table)
    if texts is None:
        return None
    return [localize(text, *languages) for text in texts]


def all_keys() -> list[KeyPointKey]:
    return list(
        itertools.product(MedicationCategory, SymptomScoreCategory, DizzinessCategory, WeightCategory)
    )


def coverage_report(table: Optional[Sequence[KeyPointEntry]] = None) -> CoverageReport:
    """Which of the theoretical category combinations have no authored entry."""
    entries = key_point_table() if table is None else table
    authored = {entry.key for entry in entries}
    unauthored = tuple(key for key in all_keys() if key not in authored)
    return CoverageReport(authored=len(authored), unauthored=unauthored)
