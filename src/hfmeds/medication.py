"""
Medication and prescription records.

Typed, already-validated shapes of the medication definition and the
prescription (medication request) consumed by the dosage engine.

Extensions are a tagged union: an extension's value is exactly one of
  - QuantitiesValue      : a list of quantities (e.g. total daily doses)
  - ReferenceValue       : a reference to another record
  - NestedRequestValue   : a complete prescription record (reference regimens)
  - StringValue          : free text (e.g. brand names)
and is resolved by matching on the extension URL.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from .coding import CodeableConcept, Coding, CodingSystem, codes
from .quantity import TABLET, Quantity

_EXTENSION_BASE = "http://engagehf.bdh.stanford.edu/fhir/StructureDefinition"


class ExtensionUrl:
    BRAND_NAME = f"{_EXTENSION_BASE}/Medication/extension/brandName"
    MEDICATION_CLASS = f"{_EXTENSION_BASE}/Medication/extension/medicationClass"
    MINIMUM_DAILY_DOSE = f"{_EXTENSION_BASE}/Medication/extension/minimumDailyDose"
    TARGET_DAILY_DOSE = f"{_EXTENSION_BASE}/Medication/extension/targetDailyDose"
    TOTAL_DAILY_DOSE = f"{_EXTENSION_BASE}/MedicationRequest/extension/totalDailyDose"


@dataclass(frozen=True)
class Reference:
    reference: str
    display: Optional[str] = None


# ----------------------
# Extension value variants
# ----------------------


@dataclass(frozen=True)
class QuantitiesValue:
    quantities: Sequence[Quantity]


@dataclass(frozen=True)
class ReferenceValue:
    reference: Reference


@dataclass(frozen=True)
class NestedRequestValue:
    request: "MedicationRequest"


@dataclass(frozen=True)
class StringValue:
    value: str


ExtensionValue = Union[QuantitiesValue, ReferenceValue, NestedRequestValue, StringValue]


@dataclass(frozen=True)
class Extension:
    url: str
    value: ExtensionValue


def extensions_with_url(extensions: Sequence[Extension], url: str) -> list[Extension]:
    return [extension for extension in extensions if extension.url == url]


# ----------------------
# Prescription
# ----------------------


@dataclass(frozen=True)
class DoseAndRate:
    dose_quantity: Optional[Quantity] = None


@dataclass(frozen=True)
class DosageInstruction:
    """
    One dosage instruction of a prescription.

    Attributes:
        frequency: Administrations per period (None when not stated).
        period: Length of the period, in `period_unit`.
        period_unit: Unit of the period ('d' for days).
        dose_and_rate: Per-administration doses; more than one entry means a
            multi-component administration (split dosing).
    """

    frequency: Optional[float] = None
    period: Optional[float] = None
    period_unit: Optional[str] = None
    dose_and_rate: Sequence[DoseAndRate] = field(default_factory=tuple)


@dataclass(frozen=True)
class MedicationRequest:
    id: Optional[str] = None
    medication_reference: Optional[Reference] = None
    dosage_instruction: Sequence[DosageInstruction] = field(default_factory=tuple)
    extension: Sequence[Extension] = field(default_factory=tuple)

    @classmethod
    def create(
        cls,
        medication_reference: str,
        frequency_per_day: float,
        quantity: float,
        *,
        id: Optional[str] = None,
        medication_reference_display: Optional[str] = None,
        extension: Sequence[Extension] = (),
    ) -> "MedicationRequest":
        """
        Build a plan taking `quantity` tablets `frequency_per_day` times a day.
        Example: MedicationRequest.create("medications/123", 2, 1) -> 1 tablet twice daily
        """
        return cls(
            id=id,
            medication_reference=Reference(medication_reference, medication_reference_display),
            dosage_instruction=(
                DosageInstruction(
                    frequency=frequency_per_day,
                    period=1,
                    period_unit="d",
                    dose_and_rate=(DoseAndRate(TABLET.fhir_quantity(quantity)),),
                ),
            ),
            extension=tuple(extension),
        )

    def extensions_with_url(self, url: str) -> list[Extension]:
        return extensions_with_url(self.extension, url)

    @property
    def total_daily_dose_quantities(self) -> list[Quantity]:
        """Pre-computed total daily doses attached to a reference regimen."""
        quantities: list[Quantity] = []
        for extension in self.extensions_with_url(ExtensionUrl.TOTAL_DAILY_DOSE):
            if isinstance(extension.value, QuantitiesValue):
                quantities.extend(extension.value.quantities)
        return quantities


# ----------------------
# Medication definition
# ----------------------


@dataclass(frozen=True)
class Ratio:
    numerator: Optional[Quantity] = None
    denominator: Optional[Quantity] = None


@dataclass(frozen=True)
class Ingredient:
    """
    Active substance of a medication.

    Attributes:
        strength: Amount of substance (numerator) per dispensed unit (denominator).
        item: Concept identifying the substance.
    """

    strength: Optional[Ratio] = None
    item: Optional[CodeableConcept] = None


@dataclass(frozen=True)
class Medication:
    id: Optional[str] = None
    code: Optional[CodeableConcept] = None
    ingredient: Sequence[Ingredient] = field(default_factory=tuple)
    extension: Sequence[Extension] = field(default_factory=tuple)

    def extensions_with_url(self, url: str) -> list[Extension]:
        return extensions_with_url(self.extension, url)

    @property
    def display_name(self) -> Optional[str]:
        if self.code is None:
            return None
        if self.code.text:
            return self.code.text
        return next(
            (
                coding.display
                for coding in self.code.coding
                if coding.system == CodingSystem.RXNORM
            ),
            None,
        )

    @property
    def rxnorm_code(self) -> Optional[str]:
        return next(iter(codes(self.code, Coding(system=CodingSystem.RXNORM))), None)

    @property
    def brand_names(self) -> list[str]:
        return [
            extension.value.value
            for extension in self.extensions_with_url(ExtensionUrl.BRAND_NAME)
            if isinstance(extension.value, StringValue)
        ]

    @property
    def medication_class_reference(self) -> Optional[Reference]:
        return self._first_value(ExtensionUrl.MEDICATION_CLASS, ReferenceValue, "reference")

    @property
    def minimum_daily_dose_request(self) -> Optional[MedicationRequest]:
        return self._first_value(ExtensionUrl.MINIMUM_DAILY_DOSE, NestedRequestValue, "request")

    @property
    def target_daily_dose_request(self) -> Optional[MedicationRequest]:
        return self._first_value(ExtensionUrl.TARGET_DAILY_DOSE, NestedRequestValue, "request")

    def _first_value(self, url: str, kind: type, attribute: str):
        # first extension with the url wins, whatever it carries
        matches = self.extensions_with_url(url)
        if not matches or not isinstance(matches[0].value, kind):
            return None
        return getattr(matches[0].value, attribute)
