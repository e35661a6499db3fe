"""Deterministic recipe scaling with culinary rounding and unit conversion."""

import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

from recipe_journal.app.schemas.recipe import ParsedIngredient, Recipe, ServingInfo
from recipe_journal.app.schemas.scaling import (
    RoundingPrecision,
    ScaledIngredient,
    ScaledQuantity,
    ScaledRecipe,
    ScalingInfo,
    ScalingOptions,
    UnitSystem,
)
from recipe_journal.app.services.units import convert_to_system
from recipe_journal.app.services.url_parsing.constants import (
    FRACTION_DISPLAY,
    PINCH_THRESHOLD,
    SCALING_TIPS,
    TO_TASTE_THRESHOLD,
)

logger = logging.getLogger(__name__)

PINCH_DISPLAY = "a pinch"
TO_TASTE_MODIFIER = "to taste"
_FRACTION_TOLERANCE = 0.05
_WHOLE_TOLERANCE = 0.03
_IRREGULAR_PLURALS = {"dash": "dashes", "pinch": "pinches"}


def _trim_decimal(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def plain_number(value: float) -> str:
    """Shortest plain rendering of a number: 2.0 -> "2", 0.125 -> "0.125"."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def decimal_to_display(value: float) -> str:
    """Render a decimal as a whole number plus the nearest culinary fraction.

    decimal_to_display(1.5) == "1 1/2", decimal_to_display(0.25) == "1/4".
    Values with no fraction within tolerance fall back to two decimal places.
    """
    if not math.isfinite(value):
        return str(value)
    if value <= 0:
        return "0"
    whole = math.floor(value)
    remainder = value - whole
    if remainder < _WHOLE_TOLERANCE:
        return str(whole)

    closest = None
    closest_diff = _FRACTION_TOLERANCE
    for frac_value, label in FRACTION_DISPLAY.items():
        diff = abs(remainder - frac_value)
        if diff < closest_diff:
            closest = label
            closest_diff = diff
    if closest is None:
        return _trim_decimal(f"{value:.2f}")
    return f"{whole} {closest}" if whole else closest


def exact_display(value: float) -> str:
    return _trim_decimal(f"{value:.3f}")


def singularize_unit(unit: str) -> str:
    words = unit.split(" ")
    last = words[-1]
    for singular, plural in _IRREGULAR_PLURALS.items():
        if last == plural:
            last = singular
            break
    else:
        if last.endswith("s") and not last.endswith("ss"):
            last = last[:-1]
    return " ".join(words[:-1] + [last])


def pluralize_unit(unit: str) -> str:
    words = unit.split(" ")
    last = singularize_unit(words[-1])
    last = _IRREGULAR_PLURALS.get(last, last + "s")
    return " ".join(words[:-1] + [last])


def unit_for_quantity(unit: str, quantity: float) -> str:
    return singularize_unit(unit) if quantity <= 1 else pluralize_unit(unit)


def scale_servings(servings: ServingInfo, multiplier: float) -> ServingInfo:
    # Half-up rounding: 2.5 servings -> 3
    scaled = servings.amount * multiplier
    amount = math.floor(scaled + 0.5) if math.isfinite(scaled) else scaled
    return ServingInfo(
        amount=amount,
        unit=servings.unit,
        original_text=f"{amount} {servings.unit or 'servings'}",
    )


def scaling_tips(multiplier: float) -> List[str]:
    if multiplier == 1:
        return []
    if multiplier < 1:
        return list(SCALING_TIPS["half"])
    if multiplier <= 2:
        return list(SCALING_TIPS["double"])
    if multiplier <= 3:
        return list(SCALING_TIPS["triple"])
    return list(SCALING_TIPS["large"])


def build_display_text(
    scaled: ScaledQuantity,
    unit: Optional[str],
    ingredient: str,
    preparation: Optional[str] = None,
    notes: Optional[str] = None,
) -> str:
    parts: List[str] = []
    if scaled.display_modifier:
        parts.append(f"{scaled.display_value} ({scaled.display_modifier})")
    else:
        parts.append(scaled.display_value)

    if unit and scaled.display_value != PINCH_DISPLAY:
        effective = max(scaled.value, scaled.value_to or scaled.value)
        parts.append(unit_for_quantity(unit, effective))

    parts.append(ingredient)
    if preparation:
        parts.append(f", {preparation}")
    if notes:
        parts.append(f" ({notes})")

    text = " ".join(parts)
    text = " ".join(text.split())
    return text.replace(" ,", ",").strip()


def _render(value: float, rounding_precision: RoundingPrecision) -> str:
    if rounding_precision == "exact":
        return exact_display(value)
    return decimal_to_display(value)


def build_scaled_quantity(
    value: float,
    value_to: Optional[float],
    original_value: float,
    original_value_to: Optional[float],
    rounding_precision: RoundingPrecision = "friendly",
) -> ScaledQuantity:
    largest = max(value, value_to if value_to is not None else value)
    audit = {
        "value": value,
        "value_to": value_to,
        "original_value": original_value,
        "original_value_to": original_value_to,
    }
    if largest <= TO_TASTE_THRESHOLD:
        return ScaledQuantity(
            display_value=PINCH_DISPLAY,
            display_modifier=TO_TASTE_MODIFIER,
            was_rounded=True,
            **audit,
        )
    if largest <= PINCH_THRESHOLD:
        return ScaledQuantity(display_value=PINCH_DISPLAY, was_rounded=True, **audit)

    display = _render(value, rounding_precision)
    was_rounded = display != plain_number(value)
    if value_to is not None:
        display_to = _render(value_to, rounding_precision)
        was_rounded = was_rounded or display_to != plain_number(value_to)
        if display_to != display:
            display = f"{display}–{display_to}"
    return ScaledQuantity(display_value=display, was_rounded=was_rounded, **audit)


class ScalingService:
    """Applies a multiplier to recipes and single ingredients. Accepts any multiplier."""

    def scale_ingredient_for_display(
        self,
        ingredient: ParsedIngredient,
        multiplier: float,
        target_unit_system: Optional[UnitSystem] = None,
        rounding_precision: RoundingPrecision = "friendly",
    ) -> ScaledIngredient:
        base = ingredient.model_dump(include=set(ParsedIngredient.model_fields))
        quantity = ingredient.quantity
        if quantity is None:
            return ScaledIngredient(
                **base,
                scaled_quantity=None,
                scaled_unit=ingredient.unit,
                display_text=ingredient.original,
            )

        value = quantity.value * multiplier
        value_to = quantity.value_to * multiplier if quantity.value_to is not None else None
        unit = ingredient.unit

        if target_unit_system and unit:
            converted = convert_to_system(value, unit, target_unit_system)
            if converted is not None:
                value, target_unit = converted
                if value_to is not None:
                    value_to = convert_to_system(value_to, unit, target_unit_system)[0]
                unit = target_unit

        scaled = build_scaled_quantity(
            value,
            value_to,
            quantity.value,
            quantity.value_to,
            rounding_precision,
        )
        return ScaledIngredient(
            **base,
            scaled_quantity=scaled,
            scaled_unit=unit,
            display_text=build_display_text(
                scaled, unit, ingredient.ingredient, ingredient.preparation, ingredient.notes
            ),
        )

    def scale_recipe(self, recipe: Recipe, options: ScalingOptions) -> ScaledRecipe:
        multiplier = options.multiplier
        logger.debug(
            "Scaling recipe '%s' by %s (%d ingredients)",
            recipe.title[:50],
            multiplier,
            len(recipe.ingredients),
        )
        scaled_ingredients = [
            self.scale_ingredient_for_display(
                ingredient,
                multiplier,
                options.target_unit_system,
                options.rounding_precision,
            )
            for ingredient in recipe.ingredients
        ]
        return ScaledRecipe(
            **{name: getattr(recipe, name) for name in Recipe.model_fields},
            scaling=ScalingInfo(
                original_servings=recipe.servings,
                scaled_servings=scale_servings(recipe.servings, multiplier),
                multiplier=multiplier,
                applied_at=datetime.now(timezone.utc),
            ),
            original_ingredients=list(recipe.ingredients),
            scaled_ingredients=scaled_ingredients,
            scaling_tips=scaling_tips(multiplier),
        )
