import logging
import os

import pytest

from hfmeds.keypoints import KeyPointEntry, key_point_table
from hfmeds.medication import Ingredient, Medication, MedicationRequest, Ratio
from hfmeds.dosage import MedicationRequestContext
from hfmeds.quantity import MG, TABLET


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Close any handler a CLI invocation left on the root logger and reset its level."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        # pytest's own capture handlers are subclasses and stay
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture(scope="session")
def fpath_key_points() -> str:
    """
    Path to the packaged key-point table.
    """
    return os.path.join(os.path.dirname(__file__), os.pardir, "src", "hfmeds", "data", "key_points.csv")


@pytest.fixture(scope="session")
def table(fpath_key_points: str) -> tuple[KeyPointEntry, ...]:
    return key_point_table(fpath_key_points)


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV text into a throwaway file and return its path."""

    def _write(content: str, name: str = "key_points.csv") -> str:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return str(path)

    return _write


def _medication(*strengths_mg, id="med"):
    return Medication(
        id=id,
        ingredient=tuple(
            Ingredient(strength=Ratio(numerator=MG.fhir_quantity(mg), denominator=TABLET.fhir_quantity(1)))
            for mg in strengths_mg
        ),
    )


@pytest.fixture
def make_medication():
    """Factory: a medication whose ingredients carry the given mg strengths per tablet."""
    return _medication


@pytest.fixture
def make_context():
    """Factory: `quantity` tablets `frequency_per_day` times a day of a medication with the given strengths."""

    def _make(frequency_per_day, quantity, *strengths_mg, **kwargs):
        request = MedicationRequest.create("medications/med", frequency_per_day, quantity)
        return MedicationRequestContext(request=request, drug=_medication(*strengths_mg), **kwargs)

    return _make
