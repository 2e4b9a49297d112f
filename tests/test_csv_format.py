from datetime import date, datetime, UTC

from asset_checker.services.export.csv_format import (
    FORMAT_MARKER,
    UTF8_BOM,
    export_csv,
    export_csv_bytes,
    export_filename,
    import_csv,
)
from asset_checker.services.export.models import (
    ExportEntry,
    ExportItems,
    InputGroupSnapshot,
    InputItemSnapshot,
)
from asset_checker.services.selection import SelectionState

EXPORTED_AT = datetime(2024, 1, 31, 12, 0, tzinfo=UTC)

ITEMS = ExportItems(
    characters=[
        ExportEntry(id="character_000000000001", name="グラン"),
        ExportEntry(id="character_000000000002", name="カタリナ"),
    ],
    weapons=[ExportEntry(id="weapon_000000000001", name="ミュルグレス", count=3)],
)

GROUPS = [
    InputGroupSnapshot(
        id=1,
        name="基本情報",
        items=[
            InputItemSnapshot(id=1, name="ランク", type="number", order_index=1),
            InputItemSnapshot(id=2, name="古戦場参加", type="checkbox", order_index=2),
        ],
    )
]


def test_export_layout():
    text = export_csv(ITEMS, GROUPS, {"1": 250, "2": True}, EXPORTED_AT)
    lines = text.split("\r\n")

    assert lines[0] == FORMAT_MARKER
    assert lines[1] == "#EXPORT_DATE,2024-01-31T12:00:00+00:00"
    assert lines[2] == ""
    assert lines[3] == "#SECTION,ITEMS"
    assert lines[4] == "type,id,name,count"
    assert lines[5] == "character,character_000000000001,グラン,"
    assert lines[7] == "weapon,weapon_000000000001,ミュルグレス,3"
    assert lines[8] == ""
    assert lines[9] == "#SECTION,USER_INFO"
    assert lines[10] == "groupId,groupName,itemId,itemName,itemType,value"
    assert lines[11] == "1,基本情報,1,ランク,number,250"
    assert lines[12] == "1,基本情報,2,古戦場参加,checkbox,true"


def test_export_bytes_have_bom():
    data = export_csv_bytes(ITEMS, GROUPS, {}, EXPORTED_AT)
    assert data.startswith(UTF8_BOM.encode("utf-8"))
    assert data.decode("utf-8-sig").startswith(FORMAT_MARKER)


def test_round_trip_into_empty_state():
    values = {"name": "Taro", "level": 120}
    text = UTF8_BOM + export_csv(ITEMS, GROUPS, values, EXPORTED_AT)

    result = import_csv(text, SelectionState())

    assert result.success
    assert result.state.selected_characters == ["character_000000000001", "character_000000000002"]
    assert result.state.selected_weapons == ["weapon_000000000001"]
    assert result.state.selected_summons == []
    assert result.state.weapon_counts == {"weapon_000000000001": 3}
    assert result.state.input_values == {"name": "Taro", "level": 120}
    assert result.unclassified_ids == []


def test_import_merges_into_existing_state():
    state = SelectionState(
        selected_characters=["character_000000000002", "character_000000000009"],
        input_values={"name": "Jiro", "memo": "keep"},
    )
    text = export_csv(ITEMS, GROUPS, {"name": "Taro"}, EXPORTED_AT)

    result = import_csv(text, state)

    assert result.state.selected_characters == [
        "character_000000000002",
        "character_000000000009",
        "character_000000000001",
    ]
    assert result.state.input_values == {"name": "Taro", "memo": "keep"}
    # 原状态不被修改
    assert state.input_values == {"name": "Jiro", "memo": "keep"}


def test_typed_user_info_values_are_parsed():
    text = export_csv(ExportItems(), GROUPS, {"1": 250, "2": False}, EXPORTED_AT)
    result = import_csv(text, SelectionState())
    assert result.success
    assert result.state.input_values == {"1": 250, "2": False}


def test_legacy_rows_without_marker():
    result = import_csv("type,id,name\ncharacter,character_001,Gran\n", SelectionState())
    assert result.success
    assert result.state.selected_characters == ["character_001"]


def test_unprefixed_ids_fall_back_to_characters():
    result = import_csv("x,unknown_42,Someone\nsummon,summon_001,Bahamut\n", SelectionState())
    assert result.success
    assert result.state.selected_characters == ["unknown_42"]
    assert result.state.selected_summons == ["summon_001"]
    assert result.unclassified_ids == ["unknown_42"]


def test_malformed_csv_returns_failure():
    state = SelectionState(selected_characters=["character_001"])
    result = import_csv('a,"broken"quote,c\n', state)
    assert not result.success
    assert result.state is state


def test_nothing_recognizable_returns_failure():
    result = import_csv("hello\nworld\n", SelectionState())
    assert not result.success
    assert result.state.all_selected_ids() == []


def test_empty_text_returns_failure():
    assert not import_csv("", SelectionState()).success


def test_export_filename():
    assert export_filename("csv", date(2024, 1, 31)) == "granblue-asset-checker-2024-01-31.csv"


def test_large_integers_survive_round_trip():
    values = {"rank": 12345678901234567891}
    text = export_csv(ExportItems(), [], values, EXPORTED_AT)

    result = import_csv(text, SelectionState())

    assert result.state.input_values == values


def test_unparsable_value_keeps_existing_value():
    state = SelectionState(input_values={"rank": 250, "memo": "keep"})
    text = "\n".join([
        FORMAT_MARKER,
        "#SECTION,USER_INFO",
        "groupId,groupName,itemId,itemName,itemType,value",
        ",,rank,,number,abc",
        ",,memo,,text,updated",
    ])

    result = import_csv(text, state)

    assert result.success
    assert result.state.input_values == {"rank": 250, "memo": "updated"}
    assert result.skipped_values == ["rank"]
    assert "跳过" in result.message


def test_only_unparsable_values_is_a_failure():
    state = SelectionState(input_values={"rank": 250})
    text = f"{FORMAT_MARKER}\n#SECTION,USER_INFO\n,,rank,,number,abc\n"

    result = import_csv(text, state)

    assert not result.success
    assert result.state.input_values == {"rank": 250}
    assert result.skipped_values == ["rank"]
