# geopulse/services/categories.py
# -----------------------------------------------------------------------------
# Canonical category resolution from free-form tag lists
# -----------------------------------------------------------------------------
from __future__ import annotations

import re
from typing import Any, Iterable

CATEGORY_TAG_TYPE = "urn:tag:category"
FALLBACK_CATEGORY = "place"

# order matters: the first canonical name that matches wins
PRIORITY_CATEGORIES = (
    "restaurant",
    "cafe",
    "bar",
    "coffee shop",
    "coffee_shop",
    "bakery",
    "hotel",
    "shopping",
    "entertainment",
    "park",
    "museum",
    "hospital",
    "school",
    "office",
    "mall",
    "spa",
)

CATEGORY_LABELS = {
    "restaurant": "Restaurant",
    "cafe": "Café",
    "bar": "Bar",
    "coffee_shop": "Coffee Shop",
    "bakery": "Bakery",
    "hotel": "Hotel",
    "shopping": "Shopping",
    "entertainment": "Entertainment",
    "park": "Park",
    "museum": "Museum",
    "hospital": "Hospital",
    "school": "School",
    "office": "Office",
    "mall": "Mall",
    "spa": "Spa & Wellness",
    "place": "General Place",
}

_WS = re.compile(r"\s+")


def canonical_label(text: Any) -> str:
    """'Coffee  Shop ' -> 'coffee_shop'. Empty/None -> ''."""
    if text is None:
        return ""
    return _WS.sub("_", str(text).strip().lower())


def display_label(category: str) -> str:
    if category in CATEGORY_LABELS:
        return CATEGORY_LABELS[category]
    return re.sub(r"[_-]", " ", category).title()


def category_tag_names(tags: Any) -> list[str]:
    if not isinstance(tags, list):
        return []
    names = []
    for tag in tags:
        if not isinstance(tag, dict) or tag.get("type") != CATEGORY_TAG_TYPE:
            continue
        name = str(tag.get("name") or "").lower().strip()
        if name:
            names.append(name)
    return names


def _matches(name: str, canonical: str) -> bool:
    if name in canonical or canonical in name:
        return True
    return bool(set(name.split()) & set(canonical.split()))


def classify_names(names: Iterable[str]) -> str:
    names = list(names)
    for priority in PRIORITY_CATEGORIES:
        canonical = priority.replace("_", " ")
        if any(_matches(name, canonical) for name in names):
            return priority.replace(" ", "_")
    if names:
        return canonical_label(names[0])
    return FALLBACK_CATEGORY


def classify_tags(tags: Any) -> str:
    """
    Pick one canonical category for a venue from its raw tag list.
    Deterministic for a given ordered input.
    """
    return classify_names(category_tag_names(tags))
