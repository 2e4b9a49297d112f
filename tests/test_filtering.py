from datetime import date

from asset_checker.services.tagging import (
    CategorySnapshot,
    FilterQuery,
    ItemSnapshot,
    TagRef,
    TagValueSnapshot,
    Taxonomy,
    filter_items,
    sort_items,
)

TAXONOMY = Taxonomy(
    [
        CategorySnapshot(id=1, name="element", item_type="character", multiple_select=False),
        CategorySnapshot(id=2, name="race", item_type="character"),
    ],
    [
        TagValueSnapshot(id=10, category_id=1, value="fire"),
        TagValueSnapshot(id=11, category_id=1, value="water"),
        TagValueSnapshot(id=20, category_id=2, value="human"),
        TagValueSnapshot(id=21, category_id=2, value="erune"),
    ],
)


def _item(item_id, name, *value_ids, released=None):
    category_of = {10: 1, 11: 1, 20: 2, 21: 2}
    return ItemSnapshot(
        id=item_id,
        name=name,
        category="character",
        implementation_date=released,
        tags=[TagRef(category_id=category_of[value_id], value_id=value_id) for value_id in value_ids],
    )


GRAN = _item("character_gran", "Gran", 10, 20)
KATALINA = _item("character_katalina", "Katalina", 11, 20)
KORWA = _item("character_korwa", "Korwa", 10, 21)
ITEMS = [GRAN, KATALINA, KORWA]


def test_item_passes_when_selected_values_intersect():
    assert filter_items([GRAN], FilterQuery(tag_filters={"element": ["fire", "water"]}), TAXONOMY) == [GRAN]
    assert filter_items([GRAN], FilterQuery(tag_filters={"element": ["water"]}), TAXONOMY) == []


def test_keys_are_combined_with_and():
    query = FilterQuery(tag_filters={"element": ["fire"], "race": ["erune"]})
    assert filter_items(ITEMS, query, TAXONOMY) == [KORWA]


def test_empty_tag_filters_are_identity():
    query = FilterQuery(tag_filters={"element": [], "race": []})
    assert filter_items(ITEMS, query, TAXONOMY) == ITEMS
    assert filter_items(ITEMS, FilterQuery()) == ITEMS


def test_search_is_case_insensitive_substring():
    assert filter_items(ITEMS, FilterQuery(search_text="KAT"), TAXONOMY) == [KATALINA]
    assert filter_items(ITEMS, FilterQuery(search_text="r"), TAXONOMY) == [GRAN, KORWA]


def test_owned_only_keeps_selected_ids():
    query = FilterQuery(owned_only=True, selected_ids=["character_korwa", "character_gran"])
    assert filter_items(ITEMS, query, TAXONOMY) == [GRAN, KORWA]


def test_owned_only_with_nothing_selected():
    assert filter_items(ITEMS, FilterQuery(owned_only=True), TAXONOMY) == []


def test_unknown_filter_key_excludes_everything():
    assert filter_items(ITEMS, FilterQuery(tag_filters={"rarity": ["SSR"]}), TAXONOMY) == []


def test_tag_filter_without_taxonomy_matches_nothing():
    assert filter_items(ITEMS, FilterQuery(tag_filters={"element": ["fire"]})) == []


def test_empty_input():
    assert filter_items([], FilterQuery(search_text="gran"), TAXONOMY) == []


def test_sort_items_by_date_then_name():
    a = _item("character_a", "Beta", released=date(2020, 1, 1))
    b = _item("character_b", "Alpha", released=date(2020, 1, 1))
    c = _item("character_c", "Gamma", released=date(2023, 5, 1))
    d = _item("character_d", "Delta")
    assert [item.id for item in sort_items([d, a, b, c])] == ["character_c", "character_b", "character_a", "character_d"]
