"""Pydantic models for URL recipe parsing."""

from typing import List, Optional

from pydantic import BaseModel, Field

from recipe_journal.app.schemas.recipe import NutritionInfo, ServingInfo


class FetchResult(BaseModel):
    """HTML retrieved by the safe fetcher."""

    html: str
    final_url: str
    status_code: int


class ExtractedRecipe(BaseModel):
    """Raw fields pulled out of a page by one extraction strategy."""

    title: str
    description: Optional[str] = None
    author: Optional[str] = None
    image: Optional[str] = None
    prep_time_minutes: Optional[int] = None
    cook_time_minutes: Optional[int] = None
    total_time_minutes: Optional[int] = None
    servings: Optional[ServingInfo] = None
    ingredients: List[str] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)
    nutrition: Optional[NutritionInfo] = None
    tags: List[str] = Field(default_factory=list)
