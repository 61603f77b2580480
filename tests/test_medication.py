from hfmeds.coding import CodeableConcept, Coding, CodingSystem
from hfmeds.medication import (
    Extension,
    ExtensionUrl,
    Medication,
    MedicationRequest,
    NestedRequestValue,
    QuantitiesValue,
    Reference,
    ReferenceValue,
    StringValue,
)
from hfmeds.quantity import MG, TABLET


def test_create_builds_once_daily_tablet_plan():
    request = MedicationRequest.create("medications/20352", 2, 1.5, medication_reference_display="Carvedilol")
    assert request.medication_reference == Reference("medications/20352", "Carvedilol")
    (instruction,) = request.dosage_instruction
    assert (instruction.frequency, instruction.period, instruction.period_unit) == (2, 1, "d")
    assert instruction.dose_and_rate[0].dose_quantity == TABLET.fhir_quantity(1.5)


def test_display_name_prefers_text_then_rxnorm_display():
    coding = (Coding(system=CodingSystem.RXNORM, code="20352", display="carvedilol"),)
    assert Medication(code=CodeableConcept(coding=coding, text="Coreg")).display_name == "Coreg"
    assert Medication(code=CodeableConcept(coding=coding)).display_name == "carvedilol"
    assert Medication().display_name is None
    assert Medication(code=CodeableConcept(coding=coding)).rxnorm_code == "20352"


def test_extension_accessors_match_on_url():
    nested = MedicationRequest.create("medications/20352", 2, 1)
    medication = Medication(
        extension=(
            Extension(ExtensionUrl.BRAND_NAME, StringValue("Coreg")),
            Extension(ExtensionUrl.MEDICATION_CLASS, ReferenceValue(Reference("medicationClasses/0"))),
            Extension(ExtensionUrl.BRAND_NAME, StringValue("Coreg CR")),
            Extension(ExtensionUrl.TARGET_DAILY_DOSE, NestedRequestValue(nested)),
        )
    )
    assert medication.brand_names == ["Coreg", "Coreg CR"]
    assert medication.medication_class_reference == Reference("medicationClasses/0")
    assert medication.target_daily_dose_request is nested
    assert medication.minimum_daily_dose_request is None


def test_first_matching_extension_wins():
    first = MedicationRequest.create("medications/a", 1, 1)
    second = MedicationRequest.create("medications/b", 1, 1)
    medication = Medication(
        extension=(
            Extension(ExtensionUrl.MINIMUM_DAILY_DOSE, NestedRequestValue(first)),
            Extension(ExtensionUrl.MINIMUM_DAILY_DOSE, NestedRequestValue(second)),
        )
    )
    assert medication.minimum_daily_dose_request is first


def test_total_daily_dose_quantities_flatten_in_order():
    request = MedicationRequest.create(
        "medications/20352",
        2,
        1,
        extension=(
            Extension(ExtensionUrl.TOTAL_DAILY_DOSE, QuantitiesValue((MG.fhir_quantity(25),))),
            Extension(ExtensionUrl.BRAND_NAME, StringValue("ignored")),
            Extension(ExtensionUrl.TOTAL_DAILY_DOSE, QuantitiesValue((MG.fhir_quantity(5), MG.fhir_quantity(10)))),
        ),
    )
    assert [q.value for q in request.total_daily_dose_quantities] == [25, 5, 10]
