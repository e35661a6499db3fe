"""URL recipe parsing package.

This package provides functionality for extracting recipes from URLs using
ordered strategies: schema.org JSON-LD first, heuristic HTML parsing second.
"""

from recipe_journal.app.services.url_parsing.html_fetcher import (
    SafeFetcher,
    is_blocked_ip,
    is_private_host,
    validate_url,
)
from recipe_journal.app.services.url_parsing.ingredient_parser import (
    IngredientParser,
    extract_ingredient_lines,
)
from recipe_journal.app.services.url_parsing.models import ExtractedRecipe, FetchResult
from recipe_journal.app.services.url_parsing.parsing_utils import (
    build_instructions,
    clean_text,
    coerce_keywords,
    extract_image,
    extract_instruction_text,
    parse_iso8601_duration,
    parse_minutes,
    parse_servings_info,
)

__all__ = [
    # Models
    "ExtractedRecipe",
    "FetchResult",
    # HTML fetching
    "SafeFetcher",
    "is_blocked_ip",
    "is_private_host",
    "validate_url",
    # Ingredient parsing
    "IngredientParser",
    "extract_ingredient_lines",
    # Parsing utilities
    "build_instructions",
    "clean_text",
    "coerce_keywords",
    "extract_image",
    "extract_instruction_text",
    "parse_iso8601_duration",
    "parse_minutes",
    "parse_servings_info",
]
