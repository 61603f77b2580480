"""
Category axes of the key-point messages.

Four closed classifications computed elsewhere from recommendations,
symptom questionnaires and vitals. This package only consumes them as
lookup keys.
"""

from enum import Enum


class _LabeledCategory(Enum):
    @classmethod
    def from_label(cls, label: str):
        """
        Convert a label ('at-target', 'At target', 'AT_TARGET') into the enum.
        Normalizes casing, spaces and underscores.
        """
        key = label.strip().lower().replace("_", "-").replace(" ", "-")
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown {cls.__name__} label: {label!r}")


class MedicationCategory(_LabeledCategory):
    OPTIMIZATIONS_AVAILABLE = "optimizations-available"
    NEEDS_PATIENT_OBSERVATIONS = "needs-patient-observations"
    NEEDS_LAB_OBSERVATIONS = "needs-lab-observations"
    NEEDS_BOTH_OBSERVATIONS = "needs-both-observations"
    AT_TARGET = "at-target"


class SymptomScoreCategory(_LabeledCategory):
    HIGH_STABLE_OR_IMPROVING = "high-and-stable-or-improving"
    LOW_STABLE_OR_IMPROVING = "low-and-stable-or-improving"
    WORSENING = "worsening"
    INADEQUATE = "inadequate-data"


class DizzinessCategory(_LabeledCategory):
    WORSENING = "worsening"
    STABLE_OR_IMPROVING = "stable-or-improving"
    INADEQUATE = "inadequate-data"


class WeightCategory(_LabeledCategory):
    INCREASING = "increasing"
    MISSING = "missing"
    STABLE_OR_DECREASING = "stable-or-decreasing"
