from datetime import date

import pytest

from src.integrations.contracts.carriers import CarrierType
from src.submissions.normalizer import normalize_insured_info
from src.submissions.validation import SubmissionValidationError, is_valid_fein, validate_submission

TODAY = date(2026, 10, 17)
ALL = list(CarrierType)


def _validate(payload, carriers=ALL):
    return validate_submission(normalize_insured_info(payload), carriers, today=TODAY)


def _field(payload, carriers=ALL):
    with pytest.raises(SubmissionValidationError) as exc:
        _validate(payload, carriers)
    return exc.value.field


def test_complete_record_passes_for_every_carrier(insured_payload):
    address = _validate(insured_payload)

    assert address.state == "GA"
    assert address.zip_code == "30309"


def test_fein_format():
    assert is_valid_fein("58-3247891")
    assert is_valid_fein("")
    assert is_valid_fein(None)
    assert not is_valid_fein("583247891")
    assert not is_valid_fein("58-32478")


def test_common_rules(insured_payload):
    assert _field({**insured_payload, "corporationName": ""}) == "corporationName"
    assert _field({**insured_payload, "address": ""}) == "address"
    assert _field({**insured_payload, "fein": "583247891"}) == "fein"
    assert _field({**insured_payload, "yearBuilt": None}) == "yearBuilt"


def test_zip_code_is_required_in_address(insured_payload):
    with pytest.raises(SubmissionValidationError) as exc:
        _validate({**insured_payload, "address": "1234 Peachtree St NE, Atlanta, GA"})

    assert exc.value.to_dict() == {
        "error": "Zip code is required in address",
        "field": "address",
        "details": "Please update the address to include a zip code.",
    }


@pytest.mark.parametrize("year", [1799, 2028, "nineteen ninety", 1998.5])
def test_year_built_must_be_a_plausible_year(insured_payload, year):
    assert _field({**insured_payload, "yearBuilt": year}) == "yearBuilt"


@pytest.mark.parametrize("year", [1800, 2027, "1998", "1998.0"])
def test_year_built_bounds_are_inclusive(insured_payload, year):
    _validate({**insured_payload, "yearBuilt": year})


def test_columbia_footage_blocks_the_whole_batch(insured_payload):
    payload = {**insured_payload, "totalSqFootage": 2000}

    with pytest.raises(SubmissionValidationError) as exc:
        _validate(payload, [CarrierType.ENCOVA, CarrierType.COLUMBIA])

    assert exc.value.field == "totalSqFootage"
    assert exc.value.details == "Current value: 2000"
    _validate(payload, [CarrierType.ENCOVA, CarrierType.GUARD])


def test_texas_is_excluded_for_encova_only(insured_payload):
    payload = {**insured_payload, "address": "400 Main St, Dallas, TX 75201"}

    assert _field(payload, [CarrierType.ENCOVA, CarrierType.GUARD]) == "address"
    assert _validate(payload, [CarrierType.GUARD, CarrierType.COLUMBIA]).state == "TX"


def test_guard_requirements(insured_payload):
    guard = [CarrierType.GUARD]

    assert _field({**insured_payload, "contactName": ""}, guard) == "contactName"
    assert _field({**insured_payload, "contactNumber": ""}, guard) == "contactNumber"
    assert _field({**insured_payload, "yearsExpInBusiness": None}, guard) == "yearsExpInBusiness"
    assert _field({**insured_payload, "operationDescription": ""}, guard) == "operationDescription"
    assert _field({**insured_payload, "address": "1234 Peachtree St NE GA 30309"}, guard) == "address"
    # years at location stands in for years in business
    _validate({**insured_payload, "yearsExpInBusiness": None, "yearsAtLocation": 4}, guard)


def test_columbia_requirements(insured_payload):
    columbia = [CarrierType.COLUMBIA]

    assert _field({**insured_payload, "contactEmail": ""}, columbia) == "contactEmail"
    assert _field({**insured_payload, "totalSqFootage": None}, columbia) == "totalSqFootage"
    _validate({**insured_payload, "contactEmail": ""}, [CarrierType.ENCOVA])


@pytest.mark.parametrize("footage", ["-5000", -5000, "1e4", "about 4000"])
def test_columbia_rejects_footage_that_is_not_a_positive_plain_number(insured_payload, footage):
    assert _field({**insured_payload, "totalSqFootage": footage}, [CarrierType.COLUMBIA]) == "totalSqFootage"


@pytest.mark.parametrize("footage", ["3,200", " 3000 ", 4500.5])
def test_columbia_accepts_formatted_footage(insured_payload, footage):
    _validate({**insured_payload, "totalSqFootage": footage}, [CarrierType.COLUMBIA])


def test_first_violation_in_carrier_order_is_reported(insured_payload):
    payload = {**insured_payload, "contactName": "", "address": "400 Main St, Dallas, TX 75201"}

    with pytest.raises(SubmissionValidationError) as exc:
        _validate(payload, [CarrierType.COLUMBIA, CarrierType.ENCOVA])

    assert exc.value.field == "address"
    assert "Encova" in exc.value.message
