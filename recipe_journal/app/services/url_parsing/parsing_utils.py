"""General parsing utilities for recipe extraction."""

import re
from typing import List, Optional, Sequence

from recipe_journal.app.schemas.recipe import (
    Instruction,
    NutritionInfo,
    ServingInfo,
    TemperatureInfo,
    TimeInfo,
)

DEFAULT_SERVINGS = ServingInfo(amount=4, unit="servings", original_text="Serves 4")

_SERVING_UNITS = [
    ("cookie", "cookies"),
    ("slice", "slices"),
    ("portion", "portions"),
    ("piece", "pieces"),
    ("cup", "cups"),
]
_TEMPERATURE_RE = re.compile(r"(\d{2,3})\s*°?\s*(degrees?\s*)?(F|C|fahrenheit|celsius)\b", re.I)
_TIME_RE = re.compile(r"(\d+)\s*(minutes?|mins?|hours?|hrs?)\b", re.I)


def clean_text(text) -> str:
    """Normalize whitespace in text. Non-string values clean to an empty string."""
    if not isinstance(text, str):
        return ""
    return re.sub(r"\s+", " ", text).strip()


def parse_iso8601_duration(duration: str) -> Optional[int]:
    """Parse a minimal ISO-8601 duration string (e.g., PT1H30M) into minutes."""
    if not duration:
        return None
    match = re.match(r"P(?:(\d+)D)?T?(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?$", duration.strip(), re.I)
    if not match:
        return None
    days = int(match.group(1) or 0)
    hours = int(match.group(2) or 0)
    minutes = int(match.group(3) or 0)
    seconds = int(match.group(4) or 0)
    total_minutes = days * 1440 + hours * 60 + minutes + (1 if seconds >= 30 else 0)
    return total_minutes or None


def parse_minutes(value) -> Optional[int]:
    """Parse a minutes value from various formats."""
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        iso_minutes = parse_iso8601_duration(value)
        if iso_minutes is not None:
            return iso_minutes
        match = re.search(r"(\d+)\s*(min|minute|minutes)", value, flags=re.I)
        if match:
            return int(match.group(1))
    return None


def parse_servings_info(value) -> ServingInfo:
    """Build serving info from a recipeYield-style value, defaulting to 4 servings."""
    if isinstance(value, list):
        value = next((item for item in value if item not in (None, "")), None)
    if value is None or isinstance(value, bool):
        return DEFAULT_SERVINGS
    if isinstance(value, (int, float)):
        if value <= 0:
            return DEFAULT_SERVINGS
        amount = int(value) if float(value).is_integer() else float(value)
        return ServingInfo(amount=amount, unit="servings", original_text=f"{amount} servings")
    text = clean_text(str(value))
    match = re.search(r"\d+", text)
    if not match or int(match.group()) <= 0:
        return DEFAULT_SERVINGS
    lowered = text.lower()
    unit = "servings"
    for singular, plural in _SERVING_UNITS:
        if singular in lowered:
            unit = plural
            break
    return ServingInfo(amount=int(match.group()), unit=unit, original_text=text)


def extract_image(value) -> Optional[str]:
    """Extract image URL from various schema.org image formats."""
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        url = value.get("url") or value.get("contentUrl")
        return url if isinstance(url, str) and url else None
    if isinstance(value, list) and value:
        for item in value:
            found = extract_image(item)
            if found:
                return found
    return None


def extract_author(value) -> Optional[str]:
    """Extract an author name from a string, Person object, or list of either."""
    if isinstance(value, str):
        return clean_text(value) or None
    if isinstance(value, dict):
        return clean_text(value.get("name") or "") or None
    if isinstance(value, list):
        names = [name for name in (extract_author(item) for item in value) if name]
        return ", ".join(names) if names else None
    return None


def extract_instruction_text(instructions) -> List[str]:
    """Extract step text from various instruction formats, including HowToSection groups."""
    steps: List[str] = []
    if isinstance(instructions, list):
        for entry in instructions:
            if isinstance(entry, str):
                cleaned = clean_text(entry)
                if cleaned:
                    steps.append(cleaned)
            elif isinstance(entry, dict):
                nested = entry.get("itemListElement")
                if isinstance(nested, list):
                    steps.extend(extract_instruction_text(nested))
                    continue
                text_val = entry.get("text") or entry.get("description") or entry.get("name")
                cleaned = clean_text(text_val or "")
                if cleaned:
                    steps.append(cleaned)
    elif isinstance(instructions, dict):
        steps.extend(extract_instruction_text([instructions]))
    elif isinstance(instructions, str):
        lines = [clean_text(part) for part in re.split(r"[\r\n]+", instructions)]
        lines = [line for line in lines if line]
        if len(lines) == 1:
            lines = [clean_text(s) for s in re.split(r"(?<=[.!?])\s+(?=[A-Z])", lines[0])]
        steps.extend(line for line in lines if line)
    return steps


def extract_temperature(text: str) -> Optional[TemperatureInfo]:
    match = _TEMPERATURE_RE.search(text or "")
    if not match:
        return None
    unit = "C" if match.group(3).upper().startswith("C") else "F"
    return TemperatureInfo(value=int(match.group(1)), unit=unit, original_text=match.group(0))


def extract_time(text: str) -> Optional[TimeInfo]:
    match = _TIME_RE.search(text or "")
    if not match:
        return None
    unit = "hours" if match.group(2).lower().startswith("h") else "minutes"
    return TimeInfo(value=int(match.group(1)), unit=unit, original_text=match.group(0))


def build_instructions(steps: Sequence[str]) -> List[Instruction]:
    """Number steps from 1 and attach any temperature or duration they mention."""
    return [
        Instruction(
            step=idx,
            text=step.strip(),
            temperature=extract_temperature(step),
            time=extract_time(step),
        )
        for idx, step in enumerate(steps, start=1)
    ]


def extract_nutrition(value) -> Optional[NutritionInfo]:
    if not isinstance(value, dict):
        return None
    fields = {
        "calories": value.get("calories"),
        "protein": value.get("proteinContent"),
        "carbohydrates": value.get("carbohydrateContent"),
        "fat": value.get("fatContent"),
    }
    cleaned = {k: clean_text(str(v)) for k, v in fields.items() if v not in (None, "")}
    return NutritionInfo(**cleaned) if cleaned else None


def coerce_keywords(*values) -> List[str]:
    """Merge keyword/category/cuisine values into a de-duplicated tag list."""
    raw_tags: List[str] = []
    for value in values:
        if not value:
            continue
        if isinstance(value, str):
            raw_tags.extend(kw.strip() for kw in value.split(",") if kw.strip())
        elif isinstance(value, Sequence):
            for item in value:
                if isinstance(item, str):
                    raw_tags.extend(kw.strip() for kw in item.split(",") if kw.strip())

    # Deduplicate (case-insensitive)
    seen = set()
    unique_tags = []
    for tag in raw_tags:
        tag_lower = tag.lower()
        if tag_lower not in seen:
            seen.add(tag_lower)
            unique_tags.append(tag)
    return unique_tags
