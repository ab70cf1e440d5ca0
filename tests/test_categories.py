from geopulse.services.categories import (
    CATEGORY_TAG_TYPE,
    canonical_label,
    classify_tags,
    display_label,
)


def _tags(*names, type_=CATEGORY_TAG_TYPE):
    return [{"type": type_, "name": n} for n in names]


def test_priority_order_wins_over_tag_order():
    tags = _tags("Cafe", "Italian Restaurant")
    assert classify_tags(tags) == "restaurant"


def test_token_and_containment_matches():
    assert classify_tags(_tags("Wine Bar")) == "bar"
    assert classify_tags(_tags("  COFFEE SHOP ")) == "coffee_shop"
    assert classify_tags(_tags("boutique hotel")) == "hotel"
    assert classify_tags(_tags("spa")) == "spa"


def test_only_category_tags_are_considered():
    tags = [
        {"type": "urn:tag:genre", "name": "restaurant"},
        {"type": CATEGORY_TAG_TYPE, "name": "Tea House"},
    ]
    assert classify_tags(tags) == "tea_house"


def test_fallbacks():
    assert classify_tags(_tags("Art  Gallery")) == "art_gallery"
    assert classify_tags([]) == "place"
    assert classify_tags(None) == "place"
    assert classify_tags(_tags("   ")) == "place"
    assert classify_tags(["not-a-dict", {"type": CATEGORY_TAG_TYPE}]) == "place"


def test_deterministic_for_same_input():
    tags = _tags("Gastropub", "Live Music Venue", "Brewery")
    assert len({classify_tags(list(tags)) for _ in range(20)}) == 1


def test_labels():
    assert canonical_label(" Coffee  Shop ") == "coffee_shop"
    assert canonical_label(None) == ""
    assert display_label("spa") == "Spa & Wellness"
    assert display_label("user_location") == "User Location"
