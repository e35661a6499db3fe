"""Ingredient line extraction and tokenization.

Lines are consumed left to right in a fixed order: notes, quantity, unit,
preparation, then whatever remains is the ingredient name. Each step works
on the remainder left by the previous one.
"""

import logging
import re
import uuid
from typing import Iterable, List, Optional, Tuple

from recipe_journal.app.schemas.recipe import IngredientQuantity, ParsedIngredient
from recipe_journal.app.services.quantity_parser import parse_quantity_value
from recipe_journal.app.services.units import MULTI_WORD_ABBREVIATIONS, lookup_unit_name
from recipe_journal.app.services.url_parsing.constants import (
    NOTE_PHRASES,
    PREPARATION_WORDS,
    RANGE_SEPARATORS,
    UNICODE_FRACTIONS,
)
from recipe_journal.app.services.url_parsing.parsing_utils import clean_text

logger = logging.getLogger(__name__)

UNPARSED_ERROR = "Could not parse ingredient"

_INGREDIENT_NAMESPACE = uuid.UUID("5b0f3c1e-7d2a-4f6e-9a51-3c8e2d7b4a90")
_PAREN_RE = re.compile(r"\(([^()]*)\)")
_PREP_PATTERNS = [
    (word, re.compile(rf"\b{re.escape(word)}\b", re.I)) for word in PREPARATION_WORDS
]


def ingredient_id(original: str) -> str:
    """Stable id derived from the original line, so parsing stays a pure function."""
    return str(uuid.uuid5(_INGREDIENT_NAMESPACE, original))


def extract_ingredient_lines(ingredients) -> List[str]:
    """Flatten the shapes ingredient data arrives in (list of strings/dicts, or a string)."""
    lines: List[str] = []
    if isinstance(ingredients, str):
        ingredients = [part for part in re.split(r"[\r\n]+", ingredients)]
    if not isinstance(ingredients, list):
        return lines
    for raw in ingredients:
        if isinstance(raw, dict):
            raw = raw.get("text") or raw.get("name") or ""
        if not isinstance(raw, str):
            continue
        cleaned = clean_text(raw)
        if cleaned:
            lines.append(cleaned)
    return lines


def unparsed_ingredient(original: str, error: Optional[str] = UNPARSED_ERROR) -> ParsedIngredient:
    return ParsedIngredient(
        id=ingredient_id(original),
        original=original,
        quantity=None,
        unit=None,
        ingredient=original,
        parse_confidence=0.0,
        parse_error=error,
    )


class _Scanner:
    """Cursor over a line used to read leading quantities."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        return self.text[idx] if idx < len(self.text) else ""

    def skip_spaces(self) -> None:
        while self.peek() and self.peek().isspace():
            self.pos += 1

    def read_digits(self) -> str:
        start = self.pos
        while self.peek().isdigit() or (
            self.peek() == "." and self.peek(1).isdigit()
        ):
            self.pos += 1
        return self.text[start : self.pos]

    def read_number(self) -> Optional[float]:
        """Read one number: "2", "0.5", "1/2", "½", "2½". Leaves pos unchanged on failure."""
        start = self.pos
        if self.peek() in UNICODE_FRACTIONS:
            self.pos += 1
            return UNICODE_FRACTIONS[self.text[start]]
        digits = self.read_digits()
        if not digits:
            self.pos = start
            return None
        if self.peek() in UNICODE_FRACTIONS:
            self.pos += 1
            return parse_quantity_value(self.text[start : self.pos])
        if self.peek() == "/" and self.peek(1).isdigit():
            self.pos += 1
            self.read_digits()
            value = parse_quantity_value(self.text[start : self.pos])
            if value is None:
                self.pos = start
            return value
        return parse_quantity_value(digits)

    def read_amount(self) -> Optional[float]:
        """Read a number plus an optional fractional continuation ("2 1/4", "1 ½")."""
        start = self.pos
        value = self.read_number()
        if value is None:
            return None
        token = self.text[start : self.pos]
        if token.isdigit():
            mark = self.pos
            self.skip_spaces()
            if self.pos > mark:
                frac_start = self.pos
                if self.peek() in UNICODE_FRACTIONS:
                    self.pos += 1
                    return value + UNICODE_FRACTIONS[self.text[frac_start]]
                digits = self.read_digits()
                if digits.isdigit() and self.peek() == "/" and self.peek(1).isdigit():
                    self.pos += 1
                    self.read_digits()
                    fraction = parse_quantity_value(self.text[frac_start : self.pos])
                    if fraction is not None:
                        return value + fraction
            self.pos = mark
        return value

    def read_range_separator(self) -> bool:
        start = self.pos
        self.skip_spaces()
        for separator in RANGE_SEPARATORS:
            end = self.pos + len(separator)
            if self.text[self.pos : end].lower() != separator:
                continue
            # "to" must stand alone as a word
            if separator.isalpha() and not self.peek(len(separator)).isspace():
                continue
            self.pos = end
            self.skip_spaces()
            return True
        self.pos = start
        return False


def _extract_notes(text: str) -> Tuple[str, Optional[str]]:
    notes = [clean_text(group) for group in _PAREN_RE.findall(text)]
    notes = [note for note in notes if note]
    remaining = clean_text(_PAREN_RE.sub(" ", text))

    trailing: List[str] = []
    found = True
    while found:
        found = False
        remaining = remaining.rstrip(" ,")
        lowered = remaining.lower()
        for phrase in NOTE_PHRASES:
            if not lowered.endswith(phrase):
                continue
            cut = len(remaining) - len(phrase)
            if cut > 0 and remaining[cut - 1] not in " ,":
                continue
            trailing.insert(0, remaining[cut:])
            remaining = remaining[:cut]
            found = True
            break

    notes.extend(trailing)
    return remaining.strip(" ,"), ", ".join(notes) if notes else None


def _extract_quantity(text: str) -> Tuple[Optional[IngredientQuantity], str]:
    scanner = _Scanner(text)
    value = scanner.read_amount()
    if value is None:
        return None, text

    value_to = None
    mark = scanner.pos
    if scanner.read_range_separator():
        value_to = scanner.read_amount()
        if value_to is None:
            scanner.pos = mark

    display = clean_text(text[: scanner.pos])
    remaining = text[scanner.pos :].strip()
    if value_to is None:
        return IngredientQuantity(type="single", value=value, display_value=display), remaining
    low, high = sorted((value, value_to))
    return (
        IngredientQuantity(type="range", value=low, value_to=high, display_value=display),
        remaining,
    )


def _extract_unit(text: str) -> Tuple[Optional[str], str]:
    lowered = text.lower()
    for abbr in MULTI_WORD_ABBREVIATIONS:
        if lowered.startswith(abbr):
            rest = text[len(abbr) :]
            if not rest or rest[0] in " ,.":
                return lookup_unit_name(abbr), rest.lstrip(" .,")

    words = text.split(None, 1)
    if not words:
        return None, text
    token = words[0].rstrip(".,")
    unit = lookup_unit_name(token)
    if unit is None:
        return None, text
    return unit, words[1] if len(words) > 1 else ""


def _extract_preparation(text: str) -> Tuple[Optional[str], str]:
    preparations: List[str] = []
    remaining = text.strip()

    if "," in remaining:
        head, clause = remaining.rsplit(",", 1)
        if any(pattern.search(clause) for _, pattern in _PREP_PATTERNS):
            preparations.append(clean_text(clause))
            remaining = head.strip()

    lowered = remaining.lower()
    for word in PREPARATION_WORDS:
        if lowered.startswith(word + " "):
            preparations.insert(0, word)
            remaining = remaining[len(word) :].strip()
            break

    return (", ".join(preparations) if preparations else None), remaining


def _clean_name(text: str) -> str:
    name = clean_text(text)
    if name.lower().startswith("of "):
        name = name[3:]
    return name.strip(" ,")


def _confidence(quantity, unit, name: str) -> float:
    confidence = 0.5
    if quantity is not None:
        confidence += 0.25
    if unit:
        confidence += 0.15
    if name and len(name) > 2:
        confidence += 0.10
    return min(round(confidence, 2), 1.0)


class IngredientParser:
    """Turns free-text ingredient lines into structured ingredients. Never raises."""

    def parse_ingredient(self, text: str) -> ParsedIngredient:
        original = (text or "").strip()
        if len(original) < 2:
            return unparsed_ingredient(original)

        try:
            remaining, notes = _extract_notes(original)
            quantity, remaining = _extract_quantity(remaining)
            unit, remaining = _extract_unit(remaining)
            preparation, remaining = _extract_preparation(remaining)
            name = _clean_name(remaining)
            return ParsedIngredient(
                id=ingredient_id(original),
                original=original,
                quantity=quantity,
                unit=unit,
                ingredient=name,
                preparation=preparation,
                notes=notes,
                parse_confidence=_confidence(quantity, unit, name),
            )
        except Exception as exc:
            logger.debug("Failed to parse ingredient %r: %s", original[:80], exc)
            return unparsed_ingredient(original)

    def parse_ingredients(self, lines: Iterable[str]) -> List[ParsedIngredient]:
        return [self.parse_ingredient(line) for line in lines]
