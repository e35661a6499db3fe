import logging
import math
import time
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from recipe_journal.app.api.deps import (
    get_ingredient_parser,
    get_recipe_scraper,
    get_scaling_service,
    get_smart_scale_service,
)
from recipe_journal.app.core.config import get_settings
from recipe_journal.app.core.errors import ErrorCode, RecipeError
from recipe_journal.app.schemas.recipe import Recipe
from recipe_journal.app.schemas.scaling import ScaledRecipe, ScalingOptions, SmartScaleData, SmartScaleRequest
from recipe_journal.app.services.recipe_scraper import RecipeScraper, with_parsed_ingredients
from recipe_journal.app.services.scaling_service import ScalingService
from recipe_journal.app.services.smart_scale import SmartScaleService
from recipe_journal.app.services.url_parsing.ingredient_parser import IngredientParser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recipes", tags=["recipes"])


class ParseRecipeRequest(BaseModel):
    # Plain string so malformed URLs surface as INVALID_URL rather than a 422
    url: str = Field(..., min_length=1)


class ScaleRecipeRequest(BaseModel):
    recipe: Recipe
    options: ScalingOptions


class SmartScaleRecipeRequest(BaseModel):
    recipe: Recipe
    multiplier: float
    recipe_id: Optional[str] = None


class ResponseMeta(BaseModel):
    request_id: str
    processing_time_ms: int
    ai_powered: Optional[bool] = None


class ParseRecipeResponse(BaseModel):
    success: bool = True
    data: Recipe
    meta: ResponseMeta


class ScaleRecipeResponse(BaseModel):
    success: bool = True
    data: ScaledRecipe
    meta: ResponseMeta


class SmartScaleRecipeResponse(BaseModel):
    success: bool = True
    data: SmartScaleData
    meta: ResponseMeta


def build_meta(request: Request, **extra) -> ResponseMeta:
    started = getattr(request.state, "started_at", None) or time.perf_counter()
    return ResponseMeta(
        request_id=request.state.request_id,
        processing_time_ms=int((time.perf_counter() - started) * 1000),
        **extra,
    )


def validate_multiplier(multiplier: float) -> None:
    settings = get_settings()
    if not math.isfinite(multiplier) or not settings.min_multiplier <= multiplier <= settings.max_multiplier:
        raise RecipeError(
            ErrorCode.INVALID_MULTIPLIER,
            f"Multiplier must be between {settings.min_multiplier:g} and {settings.max_multiplier:g}",
            {"multiplier": multiplier},
        )


@router.post("/parse", response_model=ParseRecipeResponse)
async def parse_recipe(
    payload: ParseRecipeRequest,
    request: Request,
    scraper: RecipeScraper = Depends(get_recipe_scraper),
    parser: IngredientParser = Depends(get_ingredient_parser),
):
    recipe = await scraper.scrape_recipe(payload.url)
    enriched = with_parsed_ingredients(recipe, parser)
    logger.info("Parsed %d ingredients for %s", len(enriched.ingredients), payload.url)
    return ParseRecipeResponse(data=enriched, meta=build_meta(request))


@router.post("/scale", response_model=ScaleRecipeResponse)
async def scale_recipe(
    payload: ScaleRecipeRequest,
    request: Request,
    scaling_service: ScalingService = Depends(get_scaling_service),
):
    validate_multiplier(payload.options.multiplier)
    scaled = scaling_service.scale_recipe(payload.recipe, payload.options)
    return ScaleRecipeResponse(data=scaled, meta=build_meta(request))


@router.post("/scale-smart", response_model=SmartScaleRecipeResponse)
async def smart_scale_recipe(
    payload: SmartScaleRecipeRequest,
    request: Request,
    smart_scale_service: SmartScaleService = Depends(get_smart_scale_service),
):
    validate_multiplier(payload.multiplier)
    if not payload.recipe.ingredients:
        raise RecipeError(ErrorCode.VALIDATION_ERROR, "Recipe has no ingredients to scale")

    scale_request = SmartScaleRequest(
        ingredients=payload.recipe.ingredients,
        multiplier=payload.multiplier,
        original_servings=payload.recipe.servings.amount,
    )
    data = await smart_scale_service.smart_scale_ingredients(scale_request, recipe_id=payload.recipe_id)
    return SmartScaleRecipeResponse(data=data, meta=build_meta(request, ai_powered=data.success))
