from datetime import date

import pytest
from sqlmodel import select

from asset_checker.models import Item, ItemTag, ItemType
from asset_checker.services.errors import NotFoundError, TagValidationError
from asset_checker.services.item_service import ItemService
from asset_checker.services.selection import SelectionState
from asset_checker.services.taxonomy_service import TagCategoryService, TagValueService


@pytest.fixture
def element(session):
    category = TagCategoryService.create_category(session, "属性", "character")
    return {
        value: TagValueService.create_value(session, category.id, value).id
        for value in ("火", "水")
    }


def test_create_item_with_tags(session, element):
    item = ItemService.create_item(
        session,
        "グラン",
        "character",
        image_url="/uploads/gran.png",
        implementation_date=date(2014, 3, 10),
        tag_value_ids=[element["火"]],
    )

    assert item.id.startswith("character_")
    assert len(item.id) == len("character_") + 12
    assert item.implementation_date == date(2014, 3, 10)
    assert [tag.value_id for tag in item.tags] == [element["火"]]


def test_single_select_violation_writes_nothing(session, element):
    with pytest.raises(TagValidationError):
        ItemService.create_item(session, "グラン", "character", tag_value_ids=[element["火"], element["水"]])

    assert session.exec(select(Item)).all() == []
    assert session.exec(select(ItemTag)).all() == []


def test_unknown_value_rejected(session):
    with pytest.raises(TagValidationError):
        ItemService.create_item(session, "グラン", "character", tag_value_ids=[404])


def test_value_from_other_item_type_rejected(session, element):
    with pytest.raises(TagValidationError):
        ItemService.create_item(session, "ミュルグレス", "weapon", tag_value_ids=[element["水"]])


def test_update_replaces_tags(session, element):
    item = ItemService.create_item(session, "グラン", "character", tag_value_ids=[element["火"]])

    updated = ItemService.update_item(session, item.id, name="ジータ", tag_value_ids=[element["水"]])
    assert updated.name == "ジータ"
    assert [tag.value_id for tag in updated.tags] == [element["水"]]

    untouched = ItemService.update_item(session, item.id, implementation_date=date(2020, 1, 1))
    assert [tag.value_id for tag in untouched.tags] == [element["水"]]


def test_get_and_delete_missing_item(session):
    with pytest.raises(NotFoundError):
        ItemService.get_item(session, "character_missing")
    with pytest.raises(NotFoundError):
        ItemService.delete_item(session, "character_missing")


def test_delete_item(session, element):
    item = ItemService.create_item(session, "グラン", "character", tag_value_ids=[element["火"]])
    ItemService.delete_item(session, item.id)
    assert ItemService.list_items(session) == []
    assert session.exec(select(ItemTag)).all() == []


def test_list_items_sorted(session):
    ItemService.create_item(session, "B", "summon", implementation_date=date(2020, 1, 1))
    ItemService.create_item(session, "A", "summon", implementation_date=date(2020, 1, 1))
    ItemService.create_item(session, "C", "summon", implementation_date=date(2022, 1, 1))
    ItemService.create_item(session, "D", "weapon", implementation_date=date(2023, 1, 1))

    assert [item.name for item in ItemService.list_items(session, "summon")] == ["C", "A", "B"]
    assert len(ItemService.list_items(session)) == 4


def test_build_export_items(session):
    gran = ItemService.create_item(session, "グラン", "character")
    sword = ItemService.create_item(session, "ミュルグレス", "weapon")
    state = SelectionState(
        selected_characters=[gran.id, "character_deleted"],
        selected_weapons=[sword.id],
        weapon_counts={sword.id: 3},
    )

    export_items = ItemService.build_export_items(session, state)

    assert [entry.name for entry in export_items.characters] == ["グラン"]
    assert export_items.characters[0].count is None
    assert export_items.weapons[0].count == 3
    assert export_items.summons == []


def test_export_items_carry_notes_and_awakenings(session):
    gran = ItemService.create_item(session, "グラン", "character")
    sword = ItemService.create_item(session, "ミュルグレス", "weapon")
    state = SelectionState(selected_characters=[gran.id], selected_weapons=[sword.id])
    state.set_weapon_count(sword.id, 2)
    state.set_awakening(sword.id, "奥義", 2)
    state.set_note(ItemType.CHARACTER, gran.id, "リミテッド")

    export_items = ItemService.build_export_items(session, state)

    assert export_items.characters[0].note == "リミテッド"
    assert export_items.characters[0].awakenings == {}
    assert export_items.weapons[0].awakenings == {"奥義": 2}
    assert export_items.weapons[0].note is None
