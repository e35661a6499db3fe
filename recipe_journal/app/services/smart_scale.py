"""Advisory smart scaling.

Quantities always come from the deterministic ScalingService. The language
model only labels ingredients (category, whether they need non-linear
handling, and why) and suggests tips. Any failure degrades to the plain
deterministic result with canned tips.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence

from pydantic import ValidationError

from recipe_journal.app.core.config import Settings, get_settings
from recipe_journal.app.core.errors import ErrorCode
from recipe_journal.app.schemas.recipe import ParsedIngredient
from recipe_journal.app.schemas.scaling import (
    AdvisoryEntry,
    AdvisoryResponse,
    ScaledIngredient,
    SmartScaleData,
    SmartScaledIngredient,
    SmartScaleRequest,
)
from recipe_journal.app.services.cache import TTLCache
from recipe_journal.app.services.llm_client import LLMClient, parse_json_content
from recipe_journal.app.services.scaling_service import ScalingService, plain_number

logger = logging.getLogger(__name__)

SMART_SCALE_CACHE_PREFIX = "smart-scale-cache"

SYSTEM_INSTRUCTION = """You are a professional chef and culinary expert specializing in recipe scaling.
You understand the science of cooking and how ingredients interact differently at various quantities.
Always provide practical, actionable advice.

IMPORTANT: Respond ONLY with valid JSON. No markdown formatting, no code blocks, no explanations outside the JSON structure."""

SCALING_RULES = """## Categories:
1. **discrete** - whole items (eggs, lemons, avocados, bananas) that cannot be used in fractions.
2. **leavening** - baking powder, baking soda, yeast; large batches usually need less than linear.
3. **seasoning** - salt, pepper, spices; large batches usually need less than linear, adjust to taste.
4. **fat** - butter, oil, ghee; linear, but note if the amount seems excessive for large batches.
5. **liquid** - water, broth, milk; linear, but 3x+ batches may need slightly less.
6. **linear** - everything else (flour, sugar, vegetables) scales by the exact multiplier."""

OUTPUT_FORMAT = """## Output Format:
Respond with ONLY this JSON structure (no markdown, no backticks, no extra text):
{
  "ingredients": [
    {"index": 0, "aiAdjusted": true, "adjustmentReason": "Round to whole eggs", "category": "discrete"}
  ],
  "tips": ["Beat the eggs together before adding to ensure even distribution"],
  "cookingTimeAdjustment": "Increase baking time by 10-15 minutes"
}

Rules for the JSON:
- "index" must match the ingredient number (0-indexed)
- "aiAdjusted" is true only if the ingredient should NOT simply be multiplied
- "adjustmentReason" explains why (only if aiAdjusted is true)
- "category" is one of: linear, discrete, leavening, seasoning, fat, liquid
- "tips" should have 1-3 practical cooking tips for this scale
- "cookingTimeAdjustment" is optional, include only if relevant
- Do NOT return scaled quantities or numbers for the ingredients; they are computed separately."""

FALLBACK_TIPS = {
    "reduce": [
        "When reducing recipes, check doneness earlier than the original time suggests.",
        "Use a smaller pan for best results.",
    ],
    "increase": [
        "Doubled recipes may need 10-15% more cooking time.",
        "You may need a larger pan or multiple pans.",
    ],
    "large": [
        "For large batches, consider baking in multiple pans for even cooking.",
        "Seasonings may need adjustment - start with less and taste as you go.",
        "Cooking times may vary significantly - use a thermometer for accuracy.",
    ],
}


def fallback_tips(multiplier: float) -> List[str]:
    if multiplier == 1:
        return []
    if multiplier < 1:
        return list(FALLBACK_TIPS["reduce"])
    if multiplier >= 3:
        return list(FALLBACK_TIPS["large"])
    return list(FALLBACK_TIPS["increase"])


def cache_key(recipe_id: str, multiplier: float) -> str:
    return f"{recipe_id}_{plain_number(multiplier)}"


def build_scaling_prompt(
    ingredients: Sequence[ParsedIngredient],
    multiplier: float,
    original_servings: Optional[float] = None,
) -> str:
    ingredients_list = "\n".join(f"{i}. {ing.original}" for i, ing in enumerate(ingredients))
    servings_info = ""
    if original_servings:
        scaled = math.floor(original_servings * multiplier + 0.5)
        servings_info = f" (from {original_servings:g} to {scaled} servings)"
    return (
        f"This recipe is being scaled by {multiplier:g}x{servings_info}.\n\n"
        "Identify which ingredients need non-linear treatment at this scale.\n\n"
        f"## Ingredients:\n{ingredients_list}\n\n"
        f"{SCALING_RULES}\n\n"
        f"{OUTPUT_FORMAT}\n"
    )


def _as_smart(ingredient: ScaledIngredient, advisory: Optional[AdvisoryEntry] = None) -> SmartScaledIngredient:
    base = ingredient.model_dump(include=set(ScaledIngredient.model_fields))
    if advisory is None:
        return SmartScaledIngredient(**base, ai_adjusted=False, adjustment_reason=None, category="linear")
    return SmartScaledIngredient(
        **base,
        ai_adjusted=advisory.ai_adjusted,
        adjustment_reason=advisory.adjustment_reason if advisory.ai_adjusted else None,
        category=advisory.category,
    )


def merge_advisory(
    deterministic: Sequence[ScaledIngredient],
    advisory_by_index: Dict[int, AdvisoryEntry],
) -> List[SmartScaledIngredient]:
    """Attach advisory labels to already-scaled ingredients without touching quantities."""
    return [_as_smart(ing, advisory_by_index.get(idx)) for idx, ing in enumerate(deterministic)]


class SmartScaleService:
    def __init__(
        self,
        scaling_service: ScalingService,
        llm_client: LLMClient,
        cache: TTLCache[SmartScaleData],
        settings: Optional[Settings] = None,
    ):
        self.scaling_service = scaling_service
        self.llm_client = llm_client
        self.cache = cache
        self.settings = settings or get_settings()

    async def _fetch_advisory(self, request: SmartScaleRequest) -> AdvisoryResponse:
        prompt = build_scaling_prompt(request.ingredients, request.multiplier, request.original_servings)
        logger.debug(
            "Requesting scaling advice for %d ingredients at %sx",
            len(request.ingredients),
            request.multiplier,
        )
        raw = await self.llm_client.complete(
            SYSTEM_INSTRUCTION,
            prompt,
            max_tokens=self.settings.smart_scale_max_tokens,
            temperature=self.settings.smart_scale_temperature,
        )
        data = parse_json_content(raw)
        try:
            return AdvisoryResponse.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Model response did not match the expected shape: {exc.error_count()} error(s)") from exc

    async def smart_scale_ingredients(
        self, request: SmartScaleRequest, recipe_id: Optional[str] = None
    ) -> SmartScaleData:
        multiplier = request.multiplier
        key = cache_key(recipe_id, multiplier) if recipe_id else None
        if key is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Smart scale cache hit for %s", key)
                return cached.model_copy(deep=True)

        deterministic = [
            self.scaling_service.scale_ingredient_for_display(ing, multiplier)
            for ing in request.ingredients
        ]

        try:
            advisory = await self._fetch_advisory(request)
        except Exception as exc:
            logger.warning("Smart scaling advice unavailable, using linear scaling: %s", exc)
            return SmartScaleData(
                ingredients=merge_advisory(deterministic, {}),
                tips=fallback_tips(multiplier),
                success=False,
                error=str(exc) or exc.__class__.__name__,
                error_code=ErrorCode.AI_SCALING_FAILED,
            )

        by_index = {entry.index: entry for entry in advisory.ingredients}
        result = SmartScaleData(
            ingredients=merge_advisory(deterministic, by_index),
            tips=advisory.tips[:3],
            cooking_time_adjustment=advisory.cooking_time_adjustment,
            success=True,
        )
        if key is not None:
            self.cache.set(key, result.model_copy(deep=True))
        logger.info("Smart scaled %d ingredients at %sx", len(deterministic), multiplier)
        return result
