import json
from datetime import datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from recipe_journal.app.api.deps import get_recipe_scraper, get_smart_scale_service
from recipe_journal.app.main import create_app
from recipe_journal.app.schemas.recipe import Recipe, RecipeSource, ServingInfo
from recipe_journal.app.services.cache import TTLCache
from recipe_journal.app.services.recipe_scraper import RecipeScraper
from recipe_journal.app.services.scaling_service import ScalingService
from recipe_journal.app.services.smart_scale import SmartScaleService
from recipe_journal.app.services.url_parsing.html_fetcher import SafeFetcher
from recipe_journal.app.services.url_parsing.ingredient_parser import IngredientParser

PUBLIC_ADDRESS = "93.184.216.34"

RECIPE_HTML = """
<html>
  <head>
    <title>Chocolate Chip Cookies | Example Kitchen</title>
    <script type="application/ld+json">
    {
      "@context": "https://schema.org",
      "@graph": [
        {"@type": "WebPage", "name": "Example Kitchen"},
        {
          "@type": "Recipe",
          "name": "Chocolate Chip Cookies",
          "description": "Chewy cookies with plenty of chocolate.",
          "author": {"@type": "Person", "name": "Sam Baker"},
          "image": ["https://cdn.example.com/cookies.jpg"],
          "prepTime": "PT15M",
          "cookTime": "PT12M",
          "totalTime": "PT27M",
          "recipeYield": "24 cookies",
          "recipeIngredient": [
            "2 1/4 cups all-purpose flour",
            "1 tsp baking soda",
            "1 cup butter, softened",
            "2 large eggs",
            "Salt to taste"
          ],
          "recipeInstructions": [
            {"@type": "HowToStep", "text": "Preheat the oven to 375°F."},
            {"@type": "HowToStep", "text": "Mix the dry ingredients in a bowl."},
            {"@type": "HowToStep", "text": "Bake for 10 minutes until golden."}
          ],
          "keywords": "cookies, dessert",
          "recipeCategory": "Dessert"
        }
      ]
    }
    </script>
  </head>
  <body><h1>Chocolate Chip Cookies</h1></body>
</html>
"""


async def public_resolver(host: str):
    return [PUBLIC_ADDRESS]


def html_response(body: str, status_code: int = 200, **headers) -> httpx.Response:
    return httpx.Response(
        status_code,
        headers={"content-type": "text/html; charset=utf-8", **headers},
        content=body.encode("utf-8"),
    )


class FakeLLMClient:
    """Stands in for LLMClient: replays canned replies or raises."""

    def __init__(self, replies=None, error: Exception = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls = []

    async def complete(self, system, prompt, max_tokens, temperature):
        self.calls.append({"system": system, "prompt": prompt})
        if self.error is not None:
            raise self.error
        reply = self.replies.pop(0)
        return reply if isinstance(reply, str) else json.dumps(reply)


@pytest.fixture
def parser():
    return IngredientParser()


@pytest.fixture
def make_fetcher():
    def factory(handler, **kwargs):
        kwargs.setdefault("resolver", public_resolver)
        kwargs.setdefault("retry_backoff_seconds", 0)
        return SafeFetcher(transport=httpx.MockTransport(handler), **kwargs)

    return factory


@pytest.fixture
def make_recipe(parser):
    def factory(lines, servings: float = 4, title: str = "Test Recipe"):
        return Recipe(
            title=title,
            servings=ServingInfo(amount=servings, unit="servings", original_text=f"{servings:g} servings"),
            ingredients=parser.parse_ingredients(lines),
            source=RecipeSource(
                url="https://example.com/recipe",
                domain="example.com",
                scraped_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
                scrape_method="schema-org",
            ),
        )

    return factory


@pytest.fixture
def page_requests():
    return []


@pytest.fixture
def fake_llm():
    return FakeLLMClient(error=RuntimeError("model unavailable"))


@pytest.fixture
def app(make_fetcher, page_requests, fake_llm):
    app = create_app()

    def handler(request: httpx.Request) -> httpx.Response:
        page_requests.append(str(request.url))
        return html_response(RECIPE_HTML)

    scraper = RecipeScraper(fetcher=make_fetcher(handler), cache=TTLCache(prefix="recipe-cache"))
    smart_scaler = SmartScaleService(
        scaling_service=ScalingService(),
        llm_client=fake_llm,
        cache=TTLCache(ttl_seconds=60, prefix="smart-scale-cache"),
    )

    app.dependency_overrides[get_recipe_scraper] = lambda: scraper
    app.dependency_overrides[get_smart_scale_service] = lambda: smart_scaler
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def recipe_html():
    return RECIPE_HTML


@pytest.fixture
def html_page():
    return html_response


@pytest.fixture
def llm_factory():
    return FakeLLMClient
