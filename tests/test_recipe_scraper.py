import pytest
from bs4 import BeautifulSoup

from recipe_journal.app.core.errors import ErrorCode, RecipeError
from recipe_journal.app.services.cache import TTLCache
from recipe_journal.app.services.recipe_scraper import RecipeScraper, with_parsed_ingredients
from recipe_journal.app.services.url_parsing.extractors import (
    extract_recipe_from_schema_org,
    extract_recipe_heuristic,
)
from recipe_journal.app.services.url_parsing.extractors.heuristic import (
    INGREDIENT_LABEL_RE,
    extract_by_heading,
    find_main_node,
)

SELECTOR_HTML = """
<html>
  <head><meta name="description" content="A weeknight pasta that comes together in twenty minutes."></head>
  <body>
    <h1 class="recipe-title">Garlic Butter Pasta</h1>
    <div class="recipe-yield">Serves 2</div>
    <ul class="recipe-ingredients">
      <li>8 oz spaghetti</li>
      <li>3 tbsp butter</li>
      <li>4 cloves garlic, minced</li>
    </ul>
    <ol class="recipe-instructions">
      <li>Boil the spaghetti until al dente.</li>
      <li>Melt the butter and cook the garlic for 2 minutes.</li>
    </ol>
  </body>
</html>
"""

HEADING_HTML = """
<html>
  <body>
    <h1>Grandma's Beef Stew</h1>
    <article>
      <p>We make this every winter.</p>
      <h2>Ingredients</h2>
      <ul>
        <li>2 lbs beef chuck, cubed</li>
        <li>3 carrots, sliced</li>
        <li>1 onion, diced</li>
      </ul>
      <h2>Instructions</h2>
      <ol>
        <li>Brown the beef in a large pot.</li>
        <li>Add the vegetables and simmer for 2 hours.</li>
      </ol>
      <h3>Notes</h3>
      <ul><li>Freezes well for up to a month.</li></ul>
    </article>
  </body>
</html>
"""

PARAGRAPH_LABEL_HTML = """
<html>
  <body>
    <h1>Simple Rice</h1>
    <div class="entry-content">
      <p><strong>Ingredients:</strong></p>
      <p>1 cup rice</p>
      <p>2 cups water</p>
      <p><strong>Directions</strong></p>
      <p>Bring the water to a boil, then add the rice.</p>
    </div>
  </body>
</html>
"""


def test_schema_org_recipe_inside_graph(recipe_html):
    extracted = extract_recipe_from_schema_org(recipe_html, "https://example.com/cookies")
    assert extracted is not None
    assert extracted.title == "Chocolate Chip Cookies"
    assert extracted.author == "Sam Baker"
    assert extracted.image == "https://cdn.example.com/cookies.jpg"
    assert extracted.prep_time_minutes == 15
    assert extracted.total_time_minutes == 27
    assert extracted.servings.amount == 24
    assert extracted.servings.unit == "cookies"
    assert len(extracted.ingredients) == 5
    assert extracted.instructions[0] == "Preheat the oven to 375°F."
    assert extracted.tags == ["cookies", "dessert"]


def test_schema_org_decodes_entities_and_skips_broken_blocks():
    html = """
    <script type="application/ld+json">{ not json </script>
    <script type="application/ld+json">
    [{"@type": ["Recipe"], "name": "Mac &amp; Cheese",
      "recipeIngredient": ["8 oz macaroni", "2 cups cheddar"],
      "recipeInstructions": "Cook the pasta. Stir in the cheese."}]
    </script>
    """
    extracted = extract_recipe_from_schema_org(html, "https://example.com/mac")
    assert extracted.title == "Mac & Cheese"
    assert extracted.instructions == ["Cook the pasta.", "Stir in the cheese."]


def test_schema_org_requires_ingredients():
    html = '<script type="application/ld+json">{"@type": "Recipe", "name": "Empty"}</script>'
    assert extract_recipe_from_schema_org(html, "https://example.com/empty") is None


def test_heuristic_uses_known_selectors():
    extracted = extract_recipe_heuristic(SELECTOR_HTML, "https://example.com/pasta")
    assert extracted.title == "Garlic Butter Pasta"
    assert extracted.ingredients == ["8 oz spaghetti", "3 tbsp butter", "4 cloves garlic, minced"]
    assert len(extracted.instructions) == 2
    assert extracted.servings.amount == 2
    assert extracted.description.startswith("A weeknight pasta")


def test_heuristic_falls_back_to_section_headings():
    extracted = extract_recipe_heuristic(HEADING_HTML, "https://example.com/stew")
    assert extracted.title == "Grandma's Beef Stew"
    assert extracted.ingredients == [
        "2 lbs beef chuck, cubed",
        "3 carrots, sliced",
        "1 onion, diced",
    ]
    assert extracted.instructions == [
        "Brown the beef in a large pot.",
        "Add the vegetables and simmer for 2 hours.",
    ]


def test_heading_fallback_returns_list_after_label():
    soup = BeautifulSoup(
        "<html><body><h2>Ingredients:</h2><ul><li>1 cup oats</li><li>2 cups milk</li>"
        "<li>1 tbsp honey</li></ul></body></html>",
        "lxml",
    )
    lines = extract_by_heading(find_main_node(soup), INGREDIENT_LABEL_RE, lambda text: True)
    assert lines == ["1 cup oats", "2 cups milk", "1 tbsp honey"]


def test_heuristic_reads_paragraph_labels():
    extracted = extract_recipe_heuristic(PARAGRAPH_LABEL_HTML, "https://example.com/rice")
    assert extracted.ingredients == ["1 cup rice", "2 cups water"]
    assert extracted.instructions == ["Bring the water to a boil, then add the rice."]


def test_heuristic_returns_none_without_ingredients():
    html = "<html><body><h1>About us</h1><p>We love food.</p></body></html>"
    assert extract_recipe_heuristic(html, "https://example.com/about") is None


@pytest.fixture
def scraper_for(make_fetcher, html_page):
    def factory(body: str, requests: list):
        def handler(request):
            requests.append(str(request.url))
            return html_page(body)

        return RecipeScraper(fetcher=make_fetcher(handler), cache=TTLCache(prefix="recipe-cache"))

    return factory


@pytest.mark.asyncio
async def test_scrape_prefers_structured_data(scraper_for, recipe_html):
    requests = []
    recipe = await scraper_for(recipe_html, requests).scrape_recipe("https://www.example.com/cookies")

    assert recipe.source.scrape_method == "schema-org"
    assert recipe.source.domain == "example.com"
    assert recipe.source.url == "https://www.example.com/cookies"
    assert recipe.raw_data.ingredients[0] == "2 1/4 cups all-purpose flour"
    assert recipe.ingredients[0].original == "2 1/4 cups all-purpose flour"
    assert recipe.ingredients[0].quantity is None
    assert [step.step for step in recipe.instructions] == [1, 2, 3]
    assert recipe.instructions[0].temperature.value == 375
    assert recipe.instructions[0].temperature.unit == "F"
    assert recipe.instructions[2].time.value == 10
    assert recipe.instructions[2].time.unit == "minutes"


@pytest.mark.asyncio
async def test_scrape_falls_back_to_dom(scraper_for):
    recipe = await scraper_for(HEADING_HTML, []).scrape_recipe("https://example.com/stew")
    assert recipe.source.scrape_method == "dom"
    assert recipe.servings.amount == 4
    assert len(recipe.ingredients) == 3


@pytest.mark.asyncio
async def test_scrape_caches_by_url(scraper_for, recipe_html):
    requests = []
    scraper = scraper_for(recipe_html, requests)
    first = await scraper.scrape_recipe("https://example.com/cookies")
    second = await scraper.scrape_recipe("https://example.com/cookies")
    assert first == second
    assert requests == ["https://example.com/cookies"]


@pytest.mark.asyncio
async def test_scrape_reports_missing_recipe(scraper_for):
    with pytest.raises(RecipeError) as exc_info:
        await scraper_for("<html><body><p>Nothing here</p></body></html>", []).scrape_recipe(
            "https://example.com/blog"
        )
    assert exc_info.value.code == ErrorCode.RECIPE_NOT_FOUND
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_scrape_validates_before_fetching(scraper_for):
    requests = []
    with pytest.raises(RecipeError) as exc_info:
        await scraper_for("<html></html>", requests).scrape_recipe("file:///etc/passwd")
    assert exc_info.value.code == ErrorCode.INVALID_URL
    assert requests == []


@pytest.mark.asyncio
async def test_with_parsed_ingredients_uses_raw_lines(scraper_for, recipe_html, parser):
    recipe = await scraper_for(recipe_html, []).scrape_recipe("https://example.com/cookies")
    parsed = with_parsed_ingredients(recipe, parser)
    flour = parsed.ingredients[0]
    assert flour.quantity.value == 2.25
    assert flour.unit == "cup"
    assert flour.ingredient == "all-purpose flour"
    assert parsed.ingredients[2].preparation == "softened"
    assert recipe.ingredients[0].quantity is None


ODD_FIELDS_HTML = """
<html>
  <head>
    <script type="application/ld+json">
    {
      "@type": "Recipe",
      "name": "Lentil Soup",
      "author": {"@type": "Person", "name": ["Ann", "Bo"]},
      "recipeIngredient": ["1 cup lentils", "4 cups stock"],
      "recipeInstructions": [
        {"@type": "HowToStep", "text": {"@value": "Rinse."}},
        {"@type": "HowToStep", "text": "Simmer for 30 minutes."}
      ]
    }
    </script>
  </head>
  <body><h1>Lentil Soup</h1></body>
</html>
"""

DOM_ONLY_HTML = """
<html>
  <body>
    <h1 class="recipe-title">Lentil Soup</h1>
    <ul class="recipe-ingredients"><li>1 cup lentils</li><li>4 cups stock</li></ul>
    <ol class="recipe-instructions"><li>Simmer for 30 minutes.</li></ol>
  </body>
</html>
"""


def test_schema_org_tolerates_non_string_fields():
    extracted = extract_recipe_from_schema_org(ODD_FIELDS_HTML, "https://example.com/soup")
    assert extracted is not None
    assert extracted.title == "Lentil Soup"
    assert extracted.author is None
    assert extracted.instructions == ["Simmer for 30 minutes."]


@pytest.mark.asyncio
async def test_failing_strategy_falls_through_to_next(make_fetcher, html_page):
    def broken(html, url):
        raise TypeError("expected string or bytes-like object, got 'list'")

    scraper = RecipeScraper(
        fetcher=make_fetcher(lambda request: html_page(DOM_ONLY_HTML)),
        cache=TTLCache(prefix="recipe-cache"),
        strategies=[("schema-org", broken), ("dom", extract_recipe_heuristic)],
    )
    recipe = await scraper.scrape_recipe("https://example.com/soup")
    assert recipe.source.scrape_method == "dom"
    assert recipe.raw_data.ingredients == ["1 cup lentils", "4 cups stock"]


@pytest.mark.asyncio
async def test_every_strategy_failing_reports_missing_recipe(make_fetcher, html_page):
    def broken(html, url):
        raise ValueError("bad markup")

    scraper = RecipeScraper(
        fetcher=make_fetcher(lambda request: html_page(DOM_ONLY_HTML)),
        cache=TTLCache(prefix="recipe-cache"),
        strategies=[("schema-org", broken)],
    )
    with pytest.raises(RecipeError) as exc_info:
        await scraper.scrape_recipe("https://example.com/soup")
    assert exc_info.value.code == ErrorCode.RECIPE_NOT_FOUND
