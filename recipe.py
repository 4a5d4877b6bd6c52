"""Helpers for the recipe records returned by the matching service.

The service serializes ``Cleaned_Ingredients`` as a Python-style list literal
(``"['salt', 'pepper']"``) and ``Instructions`` as one block of text. These
helpers turn both into plain lists without ever raising on odd input.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping, Optional

from models import RecipeDetails, RecipeRecord

_STEP_SPLIT = re.compile(r"(?<=\.)\s+|\n")


def parse_ingredients(value: Any) -> list[str]:
    """Parse the single-quoted ingredient list, falling back to ``[]``."""
    if isinstance(value, list):
        return [str(item) for item in value]
    if not isinstance(value, str):
        return []
    try:
        parsed = json.loads(value.replace("'", '"'))
    except ValueError:
        return []
    if not isinstance(parsed, list):
        return []
    return [str(item) for item in parsed]


def split_instructions(value: Any) -> list[str]:
    """Split free-text instructions into steps on sentence ends and newlines."""
    if isinstance(value, list):
        parts = [str(item) for item in value]
    elif isinstance(value, str):
        parts = _STEP_SPLIT.split(value)
    else:
        return []
    return [part.strip() for part in parts if part and part.strip()]


def format_input_summary(input_values: Optional[Mapping[str, Any]]) -> str:
    """Render ``{"protein": "10"}`` as ``"Protein: 10"``, comma separated."""
    if not input_values:
        return ""
    return ", ".join(f"{key[:1].upper()}{key[1:]}: {value}" for key, value in input_values.items())


def _field(record: RecipeRecord, *names: str) -> Any:
    for name in names:
        if name in record:
            return record[name]
    lowered = {str(key).lower(): value for key, value in record.items()}
    for name in names:
        if name.lower() in lowered:
            return lowered[name.lower()]
    return None


def describe_recipe(record: RecipeRecord) -> RecipeDetails:
    ingredients = _field(record, "Cleaned_Ingredients", "Ingredients")
    image = _field(record, "Image_Name", "image")
    return RecipeDetails(
        title=str(_field(record, "Title") or ""),
        calories=_field(record, "Calories"),
        protein=_field(record, "Protein"),
        fat=_field(record, "Fat"),
        sodium=_field(record, "Sodium"),
        ingredients=parse_ingredients(ingredients),
        instructions=split_instructions(_field(record, "Instructions")),
        image_name=str(image) if image else None,
    )
