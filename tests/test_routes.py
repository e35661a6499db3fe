import pytest


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_parse_recipe(client, page_requests):
    response = client.post("/recipes/parse", json={"url": "https://www.example.com/cookies"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["meta"]["request_id"]
    assert body["meta"]["processing_time_ms"] >= 0

    recipe = body["data"]
    assert recipe["title"] == "Chocolate Chip Cookies"
    assert recipe["source"]["scrape_method"] == "schema-org"
    assert recipe["servings"]["amount"] == 24
    flour = recipe["ingredients"][0]
    assert flour["quantity"]["value"] == 2.25
    assert flour["unit"] == "cup"
    assert page_requests == ["https://www.example.com/cookies"]


@pytest.mark.parametrize(
    "url",
    [
        "ftp://example.com/recipe",
        "http://169.254.169.254/latest/meta-data",
        "http://127.0.0.1:8080/",
    ],
)
def test_parse_rejects_unsafe_urls(client, page_requests, url):
    response = client.post("/recipes/parse", json={"url": url})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["data"] is None
    assert body["error"]["code"] == "INVALID_URL"
    assert body["meta"]["request_id"]
    assert page_requests == []


def test_parse_requires_url(client):
    response = client.post("/recipes/parse", json={})
    assert response.status_code == 422
    body = response.json()
    assert body["error_code"] == "validation_error"
    assert body["details"][0]["field"] == "body.url"


def _parsed_recipe(client):
    return client.post("/recipes/parse", json={"url": "https://example.com/cookies"}).json()["data"]


def test_scale_recipe(client):
    recipe = _parsed_recipe(client)
    response = client.post("/recipes/scale", json={"recipe": recipe, "options": {"multiplier": 0.5}})
    assert response.status_code == 200
    scaled = response.json()["data"]
    assert scaled["scaling"]["scaled_servings"]["amount"] == 12
    assert scaled["scaled_ingredients"][0]["display_text"] == "1 1/8 cups all-purpose flour"
    assert scaled["scaling_tips"]


@pytest.mark.parametrize("multiplier", [0, 0.05, 11, 100])
def test_scale_rejects_out_of_range_multiplier(client, multiplier):
    recipe = _parsed_recipe(client)
    response = client.post("/recipes/scale", json={"recipe": recipe, "options": {"multiplier": multiplier}})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_MULTIPLIER"


def test_smart_scale_falls_back_when_model_unavailable(client):
    recipe = _parsed_recipe(client)
    response = client.post("/recipes/scale-smart", json={"recipe": recipe, "multiplier": 2, "recipe_id": "cookies"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["meta"]["ai_powered"] is False
    data = body["data"]
    assert data["success"] is False
    assert data["error_code"] == "AI_SCALING_FAILED"
    assert data["tips"]
    assert all(ing["category"] == "linear" for ing in data["ingredients"])
    assert data["ingredients"][3]["display_text"] == "4 large eggs"


def test_smart_scale_rejects_out_of_range_multiplier(client):
    recipe = _parsed_recipe(client)
    response = client.post("/recipes/scale-smart", json={"recipe": recipe, "multiplier": 12})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_MULTIPLIER"
