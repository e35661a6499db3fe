from functools import lru_cache

from recipe_journal.app.core.config import get_settings
from recipe_journal.app.schemas.recipe import Recipe
from recipe_journal.app.schemas.scaling import SmartScaleData
from recipe_journal.app.services.cache import TTLCache
from recipe_journal.app.services.llm_client import LLMClient
from recipe_journal.app.services.recipe_scraper import RecipeScraper
from recipe_journal.app.services.scaling_service import ScalingService
from recipe_journal.app.services.smart_scale import SMART_SCALE_CACHE_PREFIX, SmartScaleService
from recipe_journal.app.services.url_parsing.html_fetcher import SafeFetcher
from recipe_journal.app.services.url_parsing.ingredient_parser import IngredientParser


@lru_cache
def get_recipe_cache() -> TTLCache[Recipe]:
    settings = get_settings()
    return TTLCache(ttl_seconds=None, max_entries=settings.recipe_cache_max_entries, prefix="recipe-cache")


@lru_cache
def get_smart_scale_cache() -> TTLCache[SmartScaleData]:
    settings = get_settings()
    return TTLCache(
        ttl_seconds=settings.smart_scale_cache_ttl_seconds,
        max_entries=settings.smart_scale_cache_max_entries,
        prefix=SMART_SCALE_CACHE_PREFIX,
    )


@lru_cache
def get_ingredient_parser() -> IngredientParser:
    return IngredientParser()


@lru_cache
def get_scaling_service() -> ScalingService:
    return ScalingService()


@lru_cache
def get_recipe_scraper() -> RecipeScraper:
    return RecipeScraper(fetcher=SafeFetcher(), cache=get_recipe_cache())


@lru_cache
def get_smart_scale_service() -> SmartScaleService:
    return SmartScaleService(
        scaling_service=get_scaling_service(),
        llm_client=LLMClient(),
        cache=get_smart_scale_cache(),
    )
