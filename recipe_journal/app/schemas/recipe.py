from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

ScrapeMethod = Literal["schema-org", "dom"]


class ServingInfo(BaseModel):
    amount: float
    unit: Optional[str] = None
    original_text: str

    model_config = ConfigDict(frozen=True)


class TemperatureInfo(BaseModel):
    value: int
    unit: Literal["F", "C"]
    original_text: str

    model_config = ConfigDict(frozen=True)


class TimeInfo(BaseModel):
    value: int
    unit: Literal["minutes", "hours"]
    original_text: str

    model_config = ConfigDict(frozen=True)


class Instruction(BaseModel):
    step: int
    text: str
    temperature: Optional[TemperatureInfo] = None
    time: Optional[TimeInfo] = None

    model_config = ConfigDict(frozen=True)


class NutritionInfo(BaseModel):
    calories: Optional[str] = None
    protein: Optional[str] = None
    carbohydrates: Optional[str] = None
    fat: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class RecipeSource(BaseModel):
    url: str
    domain: str
    scraped_at: datetime
    scrape_method: ScrapeMethod

    model_config = ConfigDict(frozen=True)


class IngredientQuantity(BaseModel):
    type: Literal["single", "range"]
    value: float = Field(ge=0)
    value_to: Optional[float] = None
    display_value: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_range(self) -> "IngredientQuantity":
        if self.value_to is not None and self.value_to < self.value:
            raise ValueError("value_to must be greater than or equal to value")
        if self.type == "range" and self.value_to is None:
            raise ValueError("range quantities require value_to")
        return self


class ParsedIngredient(BaseModel):
    id: str
    original: str
    quantity: Optional[IngredientQuantity] = None
    unit: Optional[str] = None
    ingredient: str
    preparation: Optional[str] = None
    notes: Optional[str] = None
    parse_confidence: float = Field(0.0, ge=0.0, le=1.0)
    parse_error: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class RawRecipeData(BaseModel):
    ingredients: List[str] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class Recipe(BaseModel):
    title: str
    description: Optional[str] = None
    author: Optional[str] = None
    image: Optional[str] = None
    prep_time_minutes: Optional[int] = None
    cook_time_minutes: Optional[int] = None
    total_time_minutes: Optional[int] = None
    servings: ServingInfo
    ingredients: List[ParsedIngredient] = Field(default_factory=list)
    instructions: List[Instruction] = Field(default_factory=list)
    nutrition: Optional[NutritionInfo] = None
    tags: List[str] = Field(default_factory=list)
    source: RecipeSource
    raw_data: Optional[RawRecipeData] = None

    model_config = ConfigDict(frozen=True)
