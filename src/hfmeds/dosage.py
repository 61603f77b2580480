"""
Daily dose engine.

Turns validated prescription + medication records into per-ingredient
daily doses, and reads the reference (minimum / target) daily doses
attached to a medication definition.

Failure classes:
- A dose entry without a numeric value aborts the computation
  (InvalidDoseQuantityError). Counting it as zero would understate the
  patient's exposure.
- An ingredient strength or reference quantity that cannot be converted
  into the requested mass unit is soft: strength 0, or dropped.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .medication import Medication, MedicationRequest, Reference
from .quantity import MG, QuantityUnit

logger = logging.getLogger(__name__)


class InvalidDoseQuantityError(ValueError):
    """Raised when a dose entry declares a dose but carries no numeric value."""


class MissingMedicationError(ValueError):
    """Raised when a computation needs a medication but no context was given."""


class MissingTargetDoseError(ValueError):
    """Raised when a medication carries no usable target daily dose."""


@dataclass(frozen=True)
class MedicationRequestContext:
    """
    One prescription paired with the records it references.

    Attributes:
        request: The patient's prescription.
        drug: The dispensed product (its ingredients carry the strengths).
        medication: The medication definition (carries reference doses).
        last_update: When the prescription was last written.
        medication_class_reference: Class the medication belongs to.
    """

    request: MedicationRequest
    drug: Medication
    medication: Optional[Medication] = None
    last_update: Optional[datetime.datetime] = None
    medication_class_reference: Optional[Reference] = None

    @property
    def reference_medication(self) -> Medication:
        return self.medication if self.medication is not None else self.drug


def tablets_per_day(request: MedicationRequest) -> float:
    """
    Dispensed units administered per day, summed over every dosage
    instruction and every dose entry within it.
    """
    total = 0.0
    for instruction in request.dosage_instruction:
        intakes_per_day = instruction.frequency or 0
        for dose in instruction.dose_and_rate:
            if dose.dose_quantity is None or dose.dose_quantity.value is None:
                raise InvalidDoseQuantityError(
                    f"Invalid dose quantity encountered in request {request.id!r}."
                )
            total += dose.dose_quantity.value * intakes_per_day
    return total


def ingredient_strengths(medication: Medication, unit: QuantityUnit = MG) -> list[float]:
    """
    Substance amount per dispensed unit for each ingredient, in `unit`.
    Ingredients whose strength cannot be converted count as 0.
    """
    strengths = []
    for index, ingredient in enumerate(medication.ingredient):
        numerator = ingredient.strength.numerator if ingredient.strength else None
        value = unit.value_of(numerator)
        if value is None:
            logger.warning(
                f"Medication {medication.id!r}: strength of ingredient {index} "
                f"cannot be expressed in {unit.unit}; using 0"
            )
            value = 0.0
        strengths.append(value)
    return strengths


def current_daily_dose(
    contexts: Sequence[MedicationRequestContext], unit: QuantityUnit = MG
) -> list[float]:
    """
    Total daily dose per ingredient index across all given prescriptions.

    The result grows to the largest ingredient count among the contexts;
    contributions to the same index are summed (e.g. one drug split over
    two pill strengths).
    Example: 1 tablet twice daily of a 100 mg tablet -> [200.0]
    """
    daily_doses: list[float] = []
    for context in contexts:
        per_day = tablets_per_day(context.request)
        strengths = ingredient_strengths(context.drug, unit)
        while len(daily_doses) < len(strengths):
            daily_doses.append(0.0)
        for index, strength in enumerate(strengths):
            daily_doses[index] += per_day * strength
    logger.debug(f"Current daily dose over {len(contexts)} request(s): {daily_doses}")
    return daily_doses


def total_daily_doses(request: Optional[MedicationRequest], unit: QuantityUnit = MG) -> Optional[list[float]]:
    """
    Pre-computed total daily doses of a reference regimen, in `unit`.
    Quantities that cannot be converted (or convert to 0) are dropped.
    """
    if request is None:
        return None
    values = []
    for quantity in request.total_daily_dose_quantities:
        value = unit.value_of(quantity)
        if not value:
            logger.warning(f"Dropping reference dose quantity {quantity!r}: not expressible in {unit.unit}")
            continue
        values.append(value)
    return values


def minimum_daily_dose(medication: Medication, unit: QuantityUnit = MG) -> Optional[list[float]]:
    return total_daily_doses(medication.minimum_daily_dose_request, unit)


def target_daily_dose(medication: Medication, unit: QuantityUnit = MG) -> Optional[list[float]]:
    return total_daily_doses(medication.target_daily_dose_request, unit)


def is_target_daily_dose_reached(contexts: Sequence[MedicationRequestContext]) -> bool:
    """Compare the summed current daily dose with the summed target daily dose."""
    if not contexts:
        raise MissingMedicationError("Medication is missing")

    medication = contexts[0].reference_medication
    target = sum(target_daily_dose(medication) or [])
    if not target:
        raise MissingTargetDoseError(f"Target daily dose is missing for {medication.id!r}")

    return sum(current_daily_dose(contexts)) >= target


def find_current_requests(
    contexts: Sequence[MedicationRequestContext],
    class_references: Sequence[str],
) -> list[MedicationRequestContext]:
    """
    Prescriptions of the given medication classes that refer to the same
    medication as the most recently updated one among them.
    """
    valid = [
        context
        for context in contexts
        if context.medication_class_reference is not None
        and context.medication_class_reference.reference in class_references
    ]
    if not valid:
        return []

    latest = valid[0]
    for context in valid[1:]:
        if _is_newer(context, latest):
            latest = context
    latest_reference = _medication_reference(latest)
    return [context for context in valid if _medication_reference(context) == latest_reference]


def _is_newer(context: MedicationRequestContext, other: MedicationRequestContext) -> bool:
    if context.last_update is None:
        return False
    return other.last_update is None or other.last_update < context.last_update


def _medication_reference(context: MedicationRequestContext) -> Optional[str]:
    reference = context.request.medication_reference
    return reference.reference if reference else None
