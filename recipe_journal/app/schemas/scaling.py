from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recipe_journal.app.core.errors import ErrorCode
from recipe_journal.app.schemas.recipe import ParsedIngredient, Recipe, ServingInfo

UnitSystem = Literal["us", "metric"]
RoundingPrecision = Literal["friendly", "exact"]
IngredientCategory = Literal["linear", "discrete", "leavening", "seasoning", "fat", "liquid"]


class ScalingOptions(BaseModel):
    multiplier: float
    target_unit_system: Optional[UnitSystem] = None
    rounding_precision: RoundingPrecision = "friendly"


class ScaledQuantity(BaseModel):
    value: float
    value_to: Optional[float] = None
    display_value: str
    display_modifier: Optional[str] = None
    was_rounded: bool = False
    original_value: float
    original_value_to: Optional[float] = None

    model_config = ConfigDict(frozen=True)


class ScaledIngredient(ParsedIngredient):
    scaled_quantity: Optional[ScaledQuantity] = None
    scaled_unit: Optional[str] = None
    display_text: str


class SmartScaledIngredient(ScaledIngredient):
    ai_adjusted: bool = False
    adjustment_reason: Optional[str] = None
    category: IngredientCategory = "linear"


class ScalingInfo(BaseModel):
    original_servings: ServingInfo
    scaled_servings: ServingInfo
    multiplier: float
    applied_at: datetime

    model_config = ConfigDict(frozen=True)


class ScaledRecipe(Recipe):
    scaling: ScalingInfo
    original_ingredients: List[ParsedIngredient] = Field(default_factory=list)
    scaled_ingredients: List[ScaledIngredient] = Field(default_factory=list)
    scaling_tips: List[str] = Field(default_factory=list)


class SmartScaleRequest(BaseModel):
    ingredients: List[ParsedIngredient]
    multiplier: float
    original_servings: Optional[float] = None


class SmartScaleData(BaseModel):
    ingredients: List[SmartScaledIngredient] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)
    cooking_time_adjustment: Optional[str] = None
    success: bool
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None


class AdvisoryEntry(BaseModel):
    """One per-ingredient annotation returned by the model."""

    index: int
    ai_adjusted: bool = Field(False, alias="aiAdjusted")
    adjustment_reason: Optional[str] = Field(None, alias="adjustmentReason")
    category: IngredientCategory = "linear"

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("category", mode="before")
    @classmethod
    def default_unknown_category(cls, value):
        if value in {"linear", "discrete", "leavening", "seasoning", "fat", "liquid"}:
            return value
        return "linear"


class AdvisoryResponse(BaseModel):
    ingredients: List[AdvisoryEntry] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)
    cooking_time_adjustment: Optional[str] = Field(None, alias="cookingTimeAdjustment")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
