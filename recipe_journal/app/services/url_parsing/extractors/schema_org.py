"""Schema.org JSON-LD recipe extraction."""

import json
import logging
from typing import Iterator, Optional

from bs4 import BeautifulSoup

from recipe_journal.app.services.url_parsing.ingredient_parser import extract_ingredient_lines
from recipe_journal.app.services.url_parsing.models import ExtractedRecipe
from recipe_journal.app.services.url_parsing.parsing_utils import (
    clean_text,
    coerce_keywords,
    extract_author,
    extract_image,
    extract_instruction_text,
    extract_nutrition,
    parse_minutes,
    parse_servings_info,
)

logger = logging.getLogger(__name__)


def decode_entities(text: Optional[str]) -> str:
    """Decode HTML entities and strip stray markup from a JSON-LD text field."""
    if not text or not isinstance(text, str):
        return ""
    if "&" not in text and "<" not in text:
        return clean_text(text)
    return clean_text(BeautifulSoup(text, "lxml").get_text(" "))


def _is_recipe(obj: dict) -> bool:
    obj_type = obj.get("@type")
    types = [obj_type] if isinstance(obj_type, str) else obj_type or []
    return any(isinstance(t, str) and "recipe" in t.lower() for t in types)


def iter_recipe_objects(data) -> Iterator[dict]:
    """Yield every Recipe-typed object, searching @graph containers and nested lists."""
    if isinstance(data, list):
        for item in data:
            yield from iter_recipe_objects(item)
    elif isinstance(data, dict):
        if _is_recipe(data):
            yield data
        graph = data.get("@graph")
        if graph is not None:
            yield from iter_recipe_objects(graph)
        main_entity = data.get("mainEntity")
        if isinstance(main_entity, (dict, list)):
            yield from iter_recipe_objects(main_entity)


def _build_recipe(obj: dict) -> Optional[ExtractedRecipe]:
    title = decode_entities(obj.get("name"))
    ingredients = [decode_entities(line) for line in extract_ingredient_lines(obj.get("recipeIngredient") or [])]
    ingredients = [line for line in ingredients if line]
    steps = [decode_entities(step) for step in extract_instruction_text(obj.get("recipeInstructions") or [])]
    steps = [step for step in steps if step]

    logger.info(
        "Recipe candidate: title=%s, ingredients=%d, steps=%d",
        title[:50] if title else "None",
        len(ingredients),
        len(steps),
    )
    if not title:
        logger.warning("Recipe candidate missing title")
        return None
    if not ingredients:
        logger.warning("Recipe candidate '%s' missing ingredients", title[:50])
        return None

    return ExtractedRecipe(
        title=title,
        description=decode_entities(obj.get("description")) or None,
        author=extract_author(obj.get("author")),
        image=extract_image(obj.get("image")),
        prep_time_minutes=parse_minutes(obj.get("prepTime")),
        cook_time_minutes=parse_minutes(obj.get("cookTime")),
        total_time_minutes=parse_minutes(obj.get("totalTime")),
        servings=parse_servings_info(obj.get("recipeYield")),
        ingredients=ingredients,
        instructions=steps,
        nutrition=extract_nutrition(obj.get("nutrition")),
        tags=coerce_keywords(obj.get("keywords"), obj.get("recipeCategory"), obj.get("recipeCuisine")),
    )


def extract_recipe_from_schema_org(html: str, url: str) -> Optional[ExtractedRecipe]:
    """Extract recipe from schema.org JSON-LD data embedded in HTML."""
    soup = BeautifulSoup(html, "lxml")
    scripts = soup.find_all("script", attrs={"type": "application/ld+json"})
    logger.info("Found %d JSON-LD script blocks on %s", len(scripts), url)

    for idx, script in enumerate(scripts):
        raw_json = script.string or script.get_text()
        if not raw_json or not raw_json.strip():
            logger.debug("JSON-LD block %d is empty", idx)
            continue
        try:
            data = json.loads(raw_json)
        except json.JSONDecodeError as exc:
            logger.warning(
                "JSON-LD block %d failed to parse: %s (first 200 chars: %s)",
                idx,
                exc,
                raw_json[:200],
            )
            continue

        for obj in iter_recipe_objects(data):
            recipe = _build_recipe(obj)
            if recipe is not None:
                return recipe
    return None
