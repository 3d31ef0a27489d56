from vantera_ingest.domain import attom_fields as af
from vantera_ingest.domain.parsing import first_id, first_non_finite, get_path, pick_number, pick_string


def test_pick_helpers_reject_junk():
    assert pick_string("  x  ") == "x"
    assert pick_string("   ") is None
    assert pick_string(5) is None

    assert pick_number("2500000") == 2500000.0
    assert pick_number(True) is None
    assert pick_number(float("nan")) is None
    assert pick_number("abc") is None


def test_first_non_finite_names_the_bad_value():
    assert first_non_finite(radius=0.5, minValue=None) is None
    assert first_non_finite(radius=0.5, minValue=float("nan")) == "minValue"
    assert first_non_finite(priceMin=float("inf"), bedsMin=float("-inf")) == "priceMin"


def test_get_path_walks_dicts_and_list_indexes():
    payload = {"property": [{"avm": {"amount": {"value": 10}}}]}
    assert get_path(payload, "property.0.avm.amount.value") == 10
    assert get_path(payload, "property.3.avm") is None
    assert get_path(payload, "property.avm") is None


def test_identifiers_are_strings():
    assert first_id({"identifier": {"obPropId": 123}}, "identifier.obPropId") == "123"
    assert af.read_identifiers({"identifier": {"obPropId": 1, "attomId": 2}}) == ("1", "2")
    assert af.read_identifiers({}) == (None, None)


def test_address_join_skips_empty_parts():
    addr = af.read_address({"address": {"line1": "1 OCEAN DR", "line2": " "}})
    assert addr.full == "1 OCEAN DR"
    assert af.read_address({"address": {}}).full == ""


def test_lot_size_acre_heuristic_boundary():
    # under 200 means acres
    assert af.read_lot_sqft({"lot": {"lotsize1": 199}}) == 199 * 43560
    # 200 and above are already square feet
    assert af.read_lot_sqft({"lot": {"lotsize1": 200}}) == 200
    assert af.read_lot_sqft({"lot": {"lotsize1": 0.25}}) == 10890


def test_lot_size_prefers_lotsize2():
    assert af.read_lot_sqft({"lot": {"lotsize1": 1.5, "lotsize2": 65000}}) == 65000
    assert af.read_lot_sqft({"lot": {"lotsize1": 0, "lotsize2": 0}}) is None
    assert af.read_lot_sqft({}) is None


def test_avm_and_assessment_values():
    assert af.read_avm_value({"property": [{"avm": {"amount": {"value": 2500000}}}]}) == 2500000
    assert af.read_avm_value({"property": []}) is None
    assert af.read_assessment_value({"assessment": {"market": {"mktTtlValue": "3100000"}}}) == 3100000


def test_property_rows_drops_non_dicts():
    assert af.property_rows({"property": [{"a": 1}, "x", None]}) == [{"a": 1}]
    assert af.property_rows({"status": {}}) == []
    assert af.first_property({"property": []}) is None
