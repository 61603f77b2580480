"""
Quantity and unit model.

Defines the QuantityUnit value object, the sparse Quantity record as it
arrives from validated clinical data, and the fixed, single-hop conversion
table between units.

Conversion strategy:
1) If the quantity already carries this unit (code, unit label and system
   all equal), its raw value is returned unmodified.
2) Otherwise the conversion table is searched for an edge whose source unit
   is the quantity's unit and whose target is this unit.
3) No edge means no value. Edges are never chained.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, replace
from typing import Callable, Optional

UCUM_SYSTEM = "http://unitsofmeasure.org"

# Pounds to kilograms (international avoirdupois pound)
_KG_PER_LB = 0.45359237


@dataclass(frozen=True)
class Quantity:
    """
    A measured value as found in a clinical record.

    Every field may be missing: real records often carry a value without a
    unit, or a unit without a value.

    Attributes:
        value: Numeric amount, or None.
        unit: Human-readable unit label (e.g. 'lbs').
        code: Unit code within `system` (e.g. '[lb_av]').
        system: Coding system of `code`.
    """

    value: Optional[float] = None
    unit: Optional[str] = None
    code: Optional[str] = None
    system: Optional[str] = None


@dataclass(frozen=True)
class Observation:
    """A single converted measurement: value, unit and the time it was taken."""

    value: float
    unit: "QuantityUnit"
    date: Optional[datetime.datetime] = None


@dataclass(frozen=True)
class QuantityUnit:
    """
    A unit identified by the triple (code, unit label, coding system).

    Equality is structural over all three fields.
    """

    code: str
    unit: str
    system: str = UCUM_SYSTEM

    def equals(self, other: "QuantityUnit") -> bool:
        return (
            self.code == other.code
            and self.unit == other.unit
            and self.system == other.system
        )

    def is_used_in(self, quantity: Quantity) -> bool:
        """True if the quantity's code, system and unit are exactly this unit's."""
        return (
            self.code == quantity.code
            and self.system == quantity.system
            and self.unit == quantity.unit
        )

    def fhir_quantity(self, value: float) -> Quantity:
        return Quantity(value=value, unit=self.unit, code=self.code, system=self.system)

    def convert(self, value: float, target: "QuantityUnit") -> Optional[float]:
        """
        Convert `value` given in this unit into `target`.
        Returns None when no edge (self → target) is registered.
        """
        for edge in CONVERSIONS:
            if edge.source.equals(self) and edge.target.equals(target):
                return edge.apply(value)
        return None

    def convert_observation(self, observation: Observation) -> Optional[Observation]:
        """Re-express an observation in this unit, or None if no edge exists."""
        value = observation.unit.convert(observation.value, self)
        if value is None:
            return None
        return replace(observation, value=value, unit=self)

    def value_of(self, quantity: Optional[Quantity]) -> Optional[float]:
        """
        Read the quantity's value expressed in this unit.
        Returns None for a missing quantity, a missing value, or an
        unknown conversion.
        """
        if quantity is None or quantity.value is None:
            return None
        if self.is_used_in(quantity):
            return quantity.value
        for edge in CONVERSIONS:
            if edge.source.is_used_in(quantity) and edge.target.equals(self):
                return edge.apply(quantity.value)
        return None


@dataclass(frozen=True)
class ConversionEdge:
    """A directed conversion from `source` to `target`."""

    source: QuantityUnit
    target: QuantityUnit
    function: Callable[[float], float]

    def apply(self, value: float) -> float:
        return self.function(value)


# -------------------
# Registered units
# -------------------

MG = QuantityUnit("mg", "mg")
LBS = QuantityUnit("[lb_av]", "lbs")
KG = QuantityUnit("kg", "kg")
BPM = QuantityUnit("/min", "beats/minute")
MMHG = QuantityUnit("mm[Hg]", "mmHg")
MG_DL = QuantityUnit("mg/dL", "mg/dL")
MEQ_L = QuantityUnit("meq/L", "mEq/L")
ML_MIN_173M2 = QuantityUnit("mL/min/{1.73_m2}", "mL/min/1.73m2")
TABLET = QuantityUnit("{tbl}", "tbl.")

UNITS: tuple[QuantityUnit, ...] = (
    MG,
    LBS,
    KG,
    BPM,
    MMHG,
    MG_DL,
    MEQ_L,
    ML_MIN_173M2,
    TABLET,
)

CONVERSIONS: tuple[ConversionEdge, ...] = (
    ConversionEdge(LBS, KG, lambda value: value * _KG_PER_LB),
    ConversionEdge(KG, LBS, lambda value: value / _KG_PER_LB),
)


def unit_for(quantity: Quantity) -> Optional[QuantityUnit]:
    """Find the registered unit a quantity is expressed in, if any."""
    return next((unit for unit in UNITS if unit.is_used_in(quantity)), None)
