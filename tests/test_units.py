import pytest

from recipe_journal.app.services.units import (
    convert_to_system,
    convert_unit,
    get_unit,
    lookup_unit_name,
)


def test_lookup_unit_name_abbreviations():
    assert lookup_unit_name("tbsp") == "tablespoon"
    assert lookup_unit_name("TBSP") == "tablespoon"
    assert lookup_unit_name("cups") == "cup"
    assert lookup_unit_name("fl oz") == "fluid ounce"
    assert lookup_unit_name("lbs") == "pound"
    assert lookup_unit_name("handful") is None
    assert lookup_unit_name("") is None


def test_single_letter_t_is_case_sensitive():
    assert lookup_unit_name("T") == "tablespoon"
    assert lookup_unit_name("t") == "teaspoon"


def test_unit_definitions_carry_system_and_category():
    cup = get_unit("c")
    assert cup.name == "cup"
    assert cup.system == "us"
    assert cup.category == "volume"
    assert get_unit("kg").category == "weight"


def test_convert_unit_within_category():
    assert convert_unit(1, "cup", "ml") == pytest.approx(236.588)
    assert convert_unit(3, "tsp", "tbsp") == pytest.approx(1.0, rel=1e-3)
    assert convert_unit(1, "kg", "g") == pytest.approx(1000)


def test_convert_unit_rejects_mismatched_categories():
    assert convert_unit(1, "cup", "gram") is None
    assert convert_unit(1, "cup", "handful") is None


def test_convert_to_system():
    value, unit = convert_to_system(2, "cup", "metric")
    assert unit == "milliliter"
    assert value == pytest.approx(473.176)
    value, unit = convert_to_system(500, "g", "us")
    assert unit == "ounce"
    assert value == pytest.approx(17.637, rel=1e-3)
    assert convert_to_system(1, "cup", "us") is None
    assert convert_to_system(1, "pinch", "metric") is None
