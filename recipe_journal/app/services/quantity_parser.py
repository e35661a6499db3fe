from decimal import Decimal, InvalidOperation
from typing import Optional

from recipe_journal.app.services.url_parsing.constants import UNICODE_FRACTIONS


def _glyph_split(value: str) -> tuple[str, Optional[Decimal]]:
    """Split a trailing unicode fraction glyph off a token like "2½"."""
    if value and value[-1] in UNICODE_FRACTIONS:
        return value[:-1].strip(), Decimal(str(UNICODE_FRACTIONS[value[-1]]))
    return value, None


def _parse_fraction(value: str) -> Optional[Decimal]:
    num_str, denom_str = value.split("/", 1)
    num = Decimal(num_str)
    denom = Decimal(denom_str)
    if denom == 0:
        return None
    return num / denom


def parse_quantity_value(raw: Optional[str]) -> Optional[float]:
    """Resolve a quantity token ("2", "0.5", "1/2", "1 1/2", "½", "2½") to a float."""
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None

    value, glyph = _glyph_split(value)
    if glyph is not None and not value:
        return float(glyph)

    try:
        if "/" not in value and " " not in value:
            whole = Decimal(value)
            if not whole.is_finite():
                return None
            return float(whole + (glyph or 0))
    except InvalidOperation:
        pass

    if glyph is not None:
        return None

    # Fractions like "1/2" or "1 1/2"
    try:
        if " " in value:
            whole_part, frac_part = value.split(" ", 1)
            whole = Decimal(whole_part)
            frac_part = frac_part.strip()
            if frac_part in UNICODE_FRACTIONS:
                return float(whole + Decimal(str(UNICODE_FRACTIONS[frac_part])))
            frac = _parse_fraction(frac_part)
            if frac is None:
                return None
            return float(whole + frac)
        if "/" in value:
            frac = _parse_fraction(value)
            return float(frac) if frac is not None else None
    except (InvalidOperation, ValueError):
        return None

    return None
