import pytest
from sqlmodel import select

from asset_checker.models import ItemTag, TagValue
from asset_checker.services.errors import ConflictError, NotFoundError
from asset_checker.services.item_service import ItemService
from asset_checker.services.taxonomy_service import (
    DEFAULT_TAG_CATEGORIES,
    TagCategoryService,
    TagValueService,
    load_taxonomy,
)


def test_order_index_appends(session):
    first = TagCategoryService.create_category(session, "属性", "character")
    second = TagCategoryService.create_category(session, "種族", "character")
    other = TagCategoryService.create_category(session, "属性", "weapon")

    assert (first.order_index, second.order_index, other.order_index) == (1, 2, 1)

    fire = TagValueService.create_value(session, first.id, "火")
    water = TagValueService.create_value(session, first.id, " 水 ")
    assert (fire.order_index, water.order_index) == (1, 2)
    assert water.value == "水"


def test_duplicate_value_rejected(session):
    category = TagCategoryService.create_category(session, "属性", "character")
    TagValueService.create_value(session, category.id, "火")

    with pytest.raises(ConflictError):
        TagValueService.create_value(session, category.id, "火")

    water = TagValueService.create_value(session, category.id, "水")
    with pytest.raises(ConflictError):
        TagValueService.update_value(session, water.id, value="火")


def test_value_on_missing_category(session):
    with pytest.raises(NotFoundError):
        TagValueService.create_value(session, 999, "火")


def test_delete_category_cascades(session):
    category = TagCategoryService.create_category(session, "属性", "character")
    fire = TagValueService.create_value(session, category.id, "火")
    item = ItemService.create_item(session, "グラン", "character", tag_value_ids=[fire.id])

    TagCategoryService.delete_category(session, category.id)

    assert session.exec(select(TagValue)).all() == []
    assert session.exec(select(ItemTag)).all() == []
    assert ItemService.get_item_snapshot(session, item.id).tags == []

    with pytest.raises(NotFoundError):
        TagCategoryService.delete_category(session, category.id)


def test_delete_value_removes_item_tags(session):
    category = TagCategoryService.create_category(session, "得意武器", "character", multiple_select=True)
    sword = TagValueService.create_value(session, category.id, "剣")
    katana = TagValueService.create_value(session, category.id, "刀")
    item = ItemService.create_item(session, "グラン", "character", tag_value_ids=[sword.id, katana.id])

    TagValueService.delete_value(session, sword.id)

    assert [tag.value_id for tag in ItemService.get_item_snapshot(session, item.id).tags] == [katana.id]


def test_reorder_categories(session):
    a = TagCategoryService.create_category(session, "A", "summon")
    b = TagCategoryService.create_category(session, "B", "summon")
    c = TagCategoryService.create_category(session, "C", "summon")

    ordered = TagCategoryService.reorder_categories(session, "summon", [c.id, a.id])

    assert [category.name for category in ordered] == ["C", "A", "B"]
    assert [category.order_index for category in ordered] == [1, 2, 3]

    with pytest.raises(NotFoundError):
        TagCategoryService.reorder_categories(session, "summon", [12345])


def test_seed_defaults_only_once(session):
    created = TagCategoryService.seed_defaults(session)
    assert created == sum(len(definitions) for definitions in DEFAULT_TAG_CATEGORIES.values())
    assert TagCategoryService.seed_defaults(session) == 0

    taxonomy = load_taxonomy(session, "weapon")
    groups = taxonomy.filter_groups()
    assert [group.key for group in groups] == ["属性", "武器種"]
    assert groups[0].values == ["火", "水", "土", "風", "光", "闇"]


def test_update_keeps_order_unique(session):
    a = TagCategoryService.create_category(session, "A", "summon")
    b = TagCategoryService.create_category(session, "B", "summon")

    with pytest.raises(TypeError):
        TagCategoryService.update_category(session, b.id, order_index=a.order_index)

    TagCategoryService.update_category(session, b.id, name="B2", multiple_select=True)
    orders = [category.order_index for category in TagCategoryService.list_categories(session, "summon")]
    assert orders == [1, 2]


def test_reorder_values(session):
    category = TagCategoryService.create_category(session, "属性", "summon")
    fire = TagValueService.create_value(session, category.id, "火")
    water = TagValueService.create_value(session, category.id, "水")
    earth = TagValueService.create_value(session, category.id, "土")

    ordered = TagValueService.reorder_values(session, category.id, [earth.id, fire.id])

    assert [value.value for value in ordered] == ["土", "火", "水"]
    assert [value.order_index for value in ordered] == [1, 2, 3]

    with pytest.raises(NotFoundError):
        TagValueService.reorder_values(session, category.id, [water.id, 12345])
