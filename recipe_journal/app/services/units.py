"""Cooking unit table and same-category conversions.

Base units are milliliters for volume and grams for weight.
"""

from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class UnitDefinition(BaseModel):
    name: str
    abbreviations: Tuple[str, ...]
    system: str
    category: str
    base_conversion: float

    model_config = ConfigDict(frozen=True)


def _unit(name, abbreviations, system, category, base_conversion) -> UnitDefinition:
    return UnitDefinition(
        name=name,
        abbreviations=abbreviations,
        system=system,
        category=category,
        base_conversion=base_conversion,
    )


UNITS: Dict[str, UnitDefinition] = {
    "cup": _unit("cup", ("c", "c.", "cups"), "us", "volume", 236.588),
    "tablespoon": _unit(
        "tablespoon", ("tbsp", "tbsp.", "tablespoons", "tbs", "tbs."), "us", "volume", 14.787
    ),
    "teaspoon": _unit("teaspoon", ("tsp", "tsp.", "teaspoons"), "us", "volume", 4.929),
    "fluid ounce": _unit(
        "fluid ounce",
        ("fl oz", "fl. oz.", "fl oz.", "fl. oz", "fluid ounces"),
        "us",
        "volume",
        29.574,
    ),
    "pint": _unit("pint", ("pt", "pt.", "pints"), "us", "volume", 473.176),
    "quart": _unit("quart", ("qt", "qt.", "quarts"), "us", "volume", 946.353),
    "gallon": _unit("gallon", ("gal", "gal.", "gallons"), "us", "volume", 3785.41),
    "milliliter": _unit(
        "milliliter", ("ml", "milliliters", "millilitre", "millilitres"), "metric", "volume", 1.0
    ),
    "liter": _unit("liter", ("l", "liters", "litre", "litres"), "metric", "volume", 1000.0),
    "ounce": _unit("ounce", ("oz", "oz.", "ounces"), "us", "weight", 28.3495),
    "pound": _unit("pound", ("lb", "lb.", "lbs", "lbs.", "pounds"), "us", "weight", 453.592),
    "gram": _unit("gram", ("g", "g.", "grams", "gm", "gm."), "metric", "weight", 1.0),
    "kilogram": _unit("kilogram", ("kg", "kg.", "kilograms"), "metric", "weight", 1000.0),
    "milligram": _unit("milligram", ("mg", "mg.", "milligrams"), "metric", "weight", 0.001),
    # Informal units; approximations of 1/16 tsp, 1/8 tsp and a stick of butter
    "pinch": _unit("pinch", ("pinches",), "us", "volume", 0.31),
    "dash": _unit("dash", ("dashes",), "us", "volume", 0.62),
    "stick": _unit("stick", ("sticks",), "us", "weight", 113.4),
}

# Cross-system targets used when a recipe is rendered in the other unit system
CONVERSION_TARGETS: Dict[str, Dict[str, str]] = {
    "cup": {"metric": "milliliter"},
    "tablespoon": {"metric": "milliliter"},
    "teaspoon": {"metric": "milliliter"},
    "fluid ounce": {"metric": "milliliter"},
    "pint": {"metric": "milliliter"},
    "quart": {"metric": "milliliter"},
    "gallon": {"metric": "milliliter"},
    "ounce": {"metric": "gram"},
    "pound": {"metric": "gram"},
    "milliliter": {"us": "cup"},
    "liter": {"us": "quart"},
    "gram": {"us": "ounce"},
    "kilogram": {"us": "pound"},
}

# Case matters for these: "T" is a tablespoon, "t" a teaspoon
_CASE_SENSITIVE_ABBREVIATIONS = {"T": "tablespoon", "t": "teaspoon"}


def _build_abbreviation_map() -> Dict[str, str]:
    lookup: Dict[str, str] = {}
    for key, definition in UNITS.items():
        lookup[definition.name.lower()] = key
        for abbr in definition.abbreviations:
            lookup[abbr.lower()] = key
    return lookup


UNIT_ABBREVIATIONS = _build_abbreviation_map()
MULTI_WORD_ABBREVIATIONS = sorted(
    (abbr for abbr in UNIT_ABBREVIATIONS if " " in abbr), key=len, reverse=True
)


def lookup_unit_name(token: str) -> Optional[str]:
    """Return the canonical unit name for a token, or None."""
    if not token:
        return None
    if token in _CASE_SENSITIVE_ABBREVIATIONS:
        return _CASE_SENSITIVE_ABBREVIATIONS[token]
    return UNIT_ABBREVIATIONS.get(token.lower())


def get_unit(name_or_abbr: str) -> Optional[UnitDefinition]:
    key = lookup_unit_name(name_or_abbr)
    return UNITS.get(key) if key else None


def convert_unit(value: float, from_unit: str, to_unit: str) -> Optional[float]:
    """Convert between two units of the same category; None if incompatible."""
    source = get_unit(from_unit)
    target = get_unit(to_unit)
    if source is None or target is None:
        return None
    if source.category != target.category:
        return None
    return value * source.base_conversion / target.base_conversion


def convert_to_system(value: float, unit: str, target_system: str) -> Optional[Tuple[float, str]]:
    """Convert a value into the sibling unit of another system, if one is defined."""
    definition = get_unit(unit)
    if definition is None or definition.system == target_system:
        return None
    target_unit = CONVERSION_TARGETS.get(definition.name, {}).get(target_system)
    if not target_unit:
        return None
    converted = convert_unit(value, definition.name, target_unit)
    if converted is None:
        return None
    return converted, target_unit
