"""
Coding helpers.

Plain functions that filter codings of a concept. Shared by every record
kind that carries a CodeableConcept (medications, observations, ...).
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence


class CodingSystem:
    LOINC = "http://loinc.org"
    RXNORM = "http://www.nlm.nih.gov/research/umls/rxnorm"
    SNOMED_CT = "http://snomed.info/sct"


@dataclass(frozen=True)
class Coding:
    """
    One (system, code, display) triple.

    When used as a filter, any attribute left as None matches anything.
    """

    system: Optional[str] = None
    code: Optional[str] = None
    display: Optional[str] = None
    version: Optional[str] = None


@dataclass(frozen=True)
class CodeableConcept:
    coding: Sequence[Coding] = field(default_factory=tuple)
    text: Optional[str] = None


def codes(concept: Optional[CodeableConcept], filter: Coding) -> list[str]:
    """Codes of every coding whose system and version match the filter."""
    if concept is None:
        return []
    result = []
    for coding in concept.coding:
        if filter.system and coding.system != filter.system:
            continue
        if filter.version and coding.version != filter.version:
            continue
        if coding.code:
            result.append(coding.code)
    return result


def contains_coding(concept: Optional[CodeableConcept], filters: Sequence[Coding]) -> bool:
    """True if any coding of the concept matches any of the filters."""
    if concept is None:
        return False
    return any(
        _matches(coding, filter_coding)
        for filter_coding in filters
        for coding in concept.coding
    )


def _matches(coding: Coding, filter_coding: Coding) -> bool:
    if filter_coding.code and coding.code != filter_coding.code:
        return False
    if filter_coding.system and coding.system != filter_coding.system:
        return False
    if filter_coding.version and coding.version != filter_coding.version:
        return False
    return True
