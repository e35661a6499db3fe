"""Heuristic recipe extraction from HTML structure.

Known recipe-plugin selectors are tried first; when none match, the main
content region is scanned for an "Ingredients" (or "Instructions") label and
the lines that follow it are collected.
"""

import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from recipe_journal.app.services.url_parsing.models import ExtractedRecipe
from recipe_journal.app.services.url_parsing.parsing_utils import (
    DEFAULT_SERVINGS,
    clean_text,
    parse_servings_info,
)

logger = logging.getLogger(__name__)

INGREDIENT_SELECTORS = [
    ".recipe-ingredients li",
    ".ingredients li",
    ".ingredient-list li",
    '[class*="ingredient"] li',
    ".wprm-recipe-ingredient",
    ".tasty-recipes-ingredients li",
    ".recipe-ingred_txt",
    '[itemprop="recipeIngredient"]',
    ".structured-ingredients__list-item",
]

INSTRUCTION_SELECTORS = [
    ".recipe-instructions li",
    ".instructions li",
    ".recipe-steps li",
    ".directions li",
    '[class*="instruction"] li',
    '[class*="direction"] li',
    ".wprm-recipe-instruction",
    ".tasty-recipes-instructions li",
    '[itemprop="recipeInstructions"]',
]

TITLE_SELECTORS = [
    "h1.recipe-title",
    'h1[class*="recipe"]',
    ".recipe-header h1",
    '[itemprop="name"]',
    ".wprm-recipe-name",
    "h1",
]

SERVINGS_SELECTORS = [
    '[itemprop="recipeYield"]',
    ".recipe-yield",
    ".servings",
    '[class*="serving"]',
    ".wprm-recipe-servings",
]

IMAGE_SELECTORS = [
    '[itemprop="image"]',
    ".recipe-image img",
    ".recipe-photo img",
    '[class*="recipe"] img',
    ".wprm-recipe-image img",
]

INGREDIENT_LABEL_RE = re.compile(r"^\s*ingredients?\s*:?\s*$", re.I)
INSTRUCTION_LABEL_RE = re.compile(
    r"^\s*(instructions?|directions?|method|preparation|steps)\s*:?\s*$", re.I
)
STOP_LABEL_RE = re.compile(
    r"^\s*(notes?|tips?|nutrition(\s+facts|\s+information)?|equipment)\b", re.I
)
LABEL_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6", "p", "strong", "b"]
HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
MAX_SIBLING_HOPS = 25


def _select_lines(soup: BeautifulSoup, selectors: List[str], min_items: int, accept) -> List[str]:
    for selector in selectors:
        elements = soup.select(selector)
        if not elements:
            continue
        lines = [clean_text(el.get_text(" ", strip=True)) for el in elements]
        lines = [line for line in lines if accept(line)]
        if len(lines) >= min_items:
            logger.debug("Found %d lines using selector %s", len(lines), selector)
            return lines
    return []


def _is_ingredient_line(text: str) -> bool:
    return 2 <= len(text) <= 500


def _is_instruction_line(text: str) -> bool:
    return len(text) > 10


def find_main_node(soup: BeautifulSoup) -> Optional[Tag]:
    """Find the main content node in the soup."""
    return (
        soup.find(attrs={"itemtype": re.compile("Recipe", re.I)})
        or soup.find("article")
        or soup.find("main")
        or soup.find(attrs={"role": "main"})
        or soup.body
        or soup
    )


def _find_label(container: Tag, label_re: re.Pattern) -> Optional[Tag]:
    for node in container.find_all(LABEL_TAGS):
        if label_re.match(node.get_text(" ", strip=True)):
            return node
    return None


def _is_section_label(node: Tag) -> bool:
    text = node.get_text(" ", strip=True)
    if not text or len(text) > 40:
        return False
    return bool(
        INGREDIENT_LABEL_RE.match(text)
        or INSTRUCTION_LABEL_RE.match(text)
        or STOP_LABEL_RE.match(text)
    )


def _collect_after_label(label: Tag, line_filter) -> List[str]:
    # A <strong>/<b> label usually sits inside a paragraph; walk from that block instead
    start = label
    if label.name in ("strong", "b") and label.parent is not None and label.parent.name == "p":
        start = label.parent
    if start.find_next_sibling() is None and start.parent is not None:
        start = start.parent

    lines: List[str] = []
    for hops, sibling in enumerate(start.find_next_siblings(), start=1):
        if hops > MAX_SIBLING_HOPS:
            break
        if sibling.name in HEADING_TAGS or _is_section_label(sibling):
            break
        if sibling.name in ("ul", "ol"):
            items = sibling.find_all("li")
        elif sibling.name in ("div", "section"):
            items = sibling.find_all("li") or sibling.find_all("p")
        elif sibling.name == "p":
            items = [sibling]
        else:
            continue
        for item in items:
            text = clean_text(item.get_text(" ", strip=True))
            if text and line_filter(text):
                lines.append(text)
    return lines


def extract_by_heading(container: Tag, label_re: re.Pattern, line_filter) -> List[str]:
    label = _find_label(container, label_re)
    if label is None:
        return []
    return _collect_after_label(label, line_filter)


def _find_title(soup: BeautifulSoup) -> Optional[str]:
    for selector in TITLE_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = clean_text(element.get_text(" ", strip=True))
        if 3 < len(text) < 200:
            return text
    if soup.title and soup.title.string:
        text = clean_text(soup.title.string)
        if 3 < len(text) < 200:
            return text
    return None


def _find_servings(soup: BeautifulSoup):
    for selector in SERVINGS_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = clean_text(element.get_text(" ", strip=True)) or element.get("content") or ""
        if re.search(r"\d+", text):
            return parse_servings_info(text)
    return DEFAULT_SERVINGS


def _find_image(soup: BeautifulSoup) -> Optional[str]:
    for selector in IMAGE_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        src = element.get("src") or element.get("data-src") or element.get("content")
        if isinstance(src, str) and src.startswith("http"):
            return src
    return None


def _find_description(soup: BeautifulSoup) -> Optional[str]:
    meta = soup.find("meta", attrs={"name": "description"})
    content = clean_text(meta.get("content") or "") if meta else ""
    if len(content) > 20:
        return content
    element = soup.select_one('[itemprop="description"]')
    if element is not None:
        text = clean_text(element.get_text(" ", strip=True))
        if len(text) > 20:
            return text
    return None


def extract_recipe_heuristic(html: str, url: str) -> Optional[ExtractedRecipe]:
    """Extract recipe using heuristic HTML analysis."""
    soup = BeautifulSoup(html, "lxml")

    ingredients = _select_lines(soup, INGREDIENT_SELECTORS, 2, _is_ingredient_line)
    instructions = _select_lines(soup, INSTRUCTION_SELECTORS, 1, _is_instruction_line)

    container = find_main_node(soup)
    if not ingredients:
        ingredients = extract_by_heading(container, INGREDIENT_LABEL_RE, _is_ingredient_line)
        if ingredients:
            logger.info("Found %d ingredients by heading on %s", len(ingredients), url)
    if not instructions:
        instructions = extract_by_heading(container, INSTRUCTION_LABEL_RE, _is_instruction_line)

    if not ingredients:
        logger.debug("No ingredients found via DOM parsing on %s", url)
        return None

    title = _find_title(soup)
    if not title:
        logger.debug("No title found via DOM parsing on %s", url)
        return None

    return ExtractedRecipe(
        title=title,
        description=_find_description(soup),
        image=_find_image(soup),
        servings=_find_servings(soup),
        ingredients=ingredients,
        instructions=instructions,
    )
