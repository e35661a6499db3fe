"""Recipe acquisition: fetch a page, run extraction strategies in order, normalize."""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from recipe_journal.app.core.errors import ErrorCode, RecipeError
from recipe_journal.app.schemas.recipe import RawRecipeData, Recipe, RecipeSource, ScrapeMethod
from recipe_journal.app.services.cache import TTLCache
from recipe_journal.app.services.url_parsing.extractors import (
    extract_recipe_from_schema_org,
    extract_recipe_heuristic,
)
from recipe_journal.app.services.url_parsing.html_fetcher import SafeFetcher, validate_url
from recipe_journal.app.services.url_parsing.ingredient_parser import (
    IngredientParser,
    unparsed_ingredient,
)
from recipe_journal.app.services.url_parsing.models import ExtractedRecipe
from recipe_journal.app.services.url_parsing.parsing_utils import (
    DEFAULT_SERVINGS,
    build_instructions,
)

logger = logging.getLogger(__name__)

Extractor = Callable[[str, str], Optional[ExtractedRecipe]]

DEFAULT_STRATEGIES: Sequence[Tuple[ScrapeMethod, Extractor]] = (
    ("schema-org", extract_recipe_from_schema_org),
    ("dom", extract_recipe_heuristic),
)


def domain_for(url: str) -> str:
    hostname = (urlparse(url).hostname or "").lower()
    return hostname[4:] if hostname.startswith("www.") else hostname


def normalize_recipe(extracted: ExtractedRecipe, url: str, method: ScrapeMethod) -> Recipe:
    """Shape one strategy's output into a Recipe. Ingredients stay unparsed."""
    return Recipe(
        title=extracted.title,
        description=extracted.description,
        author=extracted.author,
        image=extracted.image,
        prep_time_minutes=extracted.prep_time_minutes,
        cook_time_minutes=extracted.cook_time_minutes,
        total_time_minutes=extracted.total_time_minutes,
        servings=extracted.servings or DEFAULT_SERVINGS,
        ingredients=[unparsed_ingredient(line, error=None) for line in extracted.ingredients],
        instructions=build_instructions(extracted.instructions),
        nutrition=extracted.nutrition,
        tags=extracted.tags,
        source=RecipeSource(
            url=url,
            domain=domain_for(url),
            scraped_at=datetime.now(timezone.utc),
            scrape_method=method,
        ),
        raw_data=RawRecipeData(
            ingredients=list(extracted.ingredients),
            instructions=list(extracted.instructions),
        ),
    )


def with_parsed_ingredients(recipe: Recipe, parser: IngredientParser) -> Recipe:
    """Return a copy of the recipe whose ingredients come from its raw lines."""
    lines: List[str] = (
        list(recipe.raw_data.ingredients)
        if recipe.raw_data is not None
        else [ingredient.original for ingredient in recipe.ingredients]
    )
    return recipe.model_copy(update={"ingredients": parser.parse_ingredients(lines)})


class RecipeScraper:
    """Turns a URL into a Recipe, caching results by URL."""

    def __init__(
        self,
        fetcher: SafeFetcher,
        cache: TTLCache[Recipe],
        strategies: Sequence[Tuple[ScrapeMethod, Extractor]] = DEFAULT_STRATEGIES,
    ):
        self.fetcher = fetcher
        self.cache = cache
        self.strategies = list(strategies)

    def extract(self, html: str, url: str) -> Recipe:
        for method, extractor in self.strategies:
            logger.debug("Trying %s extraction for %s", method, url)
            try:
                extracted = extractor(html, url)
            except Exception as exc:
                logger.warning("%s extraction failed for %s: %s", method, url, exc)
                continue
            if extracted is not None:
                logger.info("Extracted recipe from %s using %s", url, method)
                return normalize_recipe(extracted, url, method)
        raise RecipeError(
            ErrorCode.RECIPE_NOT_FOUND,
            "Could not find a recipe on this page.",
            {"url": url},
        )

    async def scrape_recipe(self, url: str) -> Recipe:
        url = (url or "").strip()
        validate_url(url)

        cached = self.cache.get(url)
        if cached is not None:
            logger.info("Recipe cache hit for %s", url)
            return cached

        result = await self.fetcher.fetch(url)
        recipe = self.extract(result.html, result.final_url)
        self.cache.set(url, recipe)
        return recipe
