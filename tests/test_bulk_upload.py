from asset_checker.services.bulk_upload_service import (
    BulkUploadService,
    parse_records,
    template_csv,
)
from asset_checker.services.item_service import ItemService
from asset_checker.services.taxonomy_service import TagCategoryService, load_taxonomy


CHARACTER_CSV = (
    "name,imageName,attribute,rarity,weapons,implementationDate\n"
    "グラン,gran.png,火,SSR,剣|刀,2014-03-10\n"
    "カタリナ,katalina.png,水,SSR,剣,2014-03-10\n"
    "シエテ,siete.png,風,SSR,剣,2018-03-10\n"
)


def test_missing_image_fails_only_that_row(session, storage, png):
    TagCategoryService.seed_defaults(session)
    images = {"gran.png": png(), "siete.png": png((30, 200, 30))}

    result = BulkUploadService.process(session, storage, "character", CHARACTER_CSV, images)

    assert (result.total, result.processed, result.failed) == (3, 2, 1)
    assert result.errors[0].record["name"] == "カタリナ"
    assert "katalina.png" in result.errors[0].error
    assert [row.name for row in result.results] == ["グラン", "シエテ"]
    assert len(storage.list()) == 2


def test_tag_columns_are_attached(session, storage, png):
    TagCategoryService.seed_defaults(session)

    BulkUploadService.process(session, storage, "character", CHARACTER_CSV, {"gran.png": png()})

    taxonomy = load_taxonomy(session, "character")
    gran = ItemService.list_items(session, "character")[0]
    tag_data = taxonomy.project(gran)
    assert tag_data["属性"] == {"火"}
    assert tag_data["得意武器"] == {"剣", "刀"}
    assert gran.image_url.startswith("/uploads/gran-")
    # レアリティ 分类不存在时该列被忽略
    assert "レアリティ" not in tag_data


def test_unknown_values_are_created(session, storage, png):
    TagCategoryService.seed_defaults(session)
    csv_text = "name,imageName,attribute\nルシフェル,lucifer.png,天\n"

    result = BulkUploadService.process(session, storage, "summon", csv_text, {"lucifer.png": png()})

    assert result.processed == 1
    values = load_taxonomy(session, "summon").filter_groups()[0].values
    assert values[-1] == "天"


def test_invalid_date_is_a_row_error(session, storage, png):
    csv_text = "name,imageName,implementationDate\nバハムート,bahamut.png,2014/03/10\n"
    result = BulkUploadService.process(session, storage, "summon", csv_text, {"bahamut.png": png()})
    assert (result.processed, result.failed) == (0, 1)
    assert ItemService.list_items(session) == []


def test_parse_records_trims_and_skips_blank_lines():
    records = parse_records("name , imageName\n グラン , gran.png \n\n,\n")
    assert records == [{"name": "グラン", "imageName": "gran.png"}]


def test_templates():
    lines = template_csv("weapon").split("\n")
    assert lines[0] == "name,imageName,attribute,weaponType,rarity,implementationDate"
    assert lines[2] == "ミュルグレス,murgleis.jpg,水,剣,SSR,2016-07-09"


def test_single_select_category_rejects_several_values(session, storage, png):
    TagCategoryService.seed_defaults(session)
    weapons = next(c for c in TagCategoryService.list_categories(session, "character") if c.name == "得意武器")
    TagCategoryService.update_category(session, weapons.id, multiple_select=False)
    csv_text = "name,imageName,weapons\nグラン,gran.png,剣|刀\nカタリナ,katalina.png,剣\n"

    result = BulkUploadService.process(
        session, storage, "character", csv_text, {"gran.png": png(), "katalina.png": png((30, 30, 200))}
    )

    assert (result.processed, result.failed) == (1, 1)
    assert "得意武器" in result.errors[0].error
    assert [item.name for item in ItemService.list_items(session, "character")] == ["カタリナ"]
    assert len(storage.list()) == 1


def test_failed_row_removes_its_image(session, storage, png, monkeypatch):
    TagCategoryService.seed_defaults(session)

    def broken(*args, **kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(BulkUploadService, "_get_or_create_value", staticmethod(broken))
    csv_text = "name,imageName,attribute\nバハムート,bahamut.png,闇\n"

    result = BulkUploadService.process(session, storage, "summon", csv_text, {"bahamut.png": png()})

    assert (result.processed, result.failed) == (0, 1)
    assert storage.list() == []
    assert ItemService.list_items(session) == []


def test_failed_row_keeps_shared_image(session, storage, png, monkeypatch):
    TagCategoryService.seed_defaults(session)
    image = png()
    first = BulkUploadService.process(session, storage, "summon", "name,imageName\nバハムート,bahamut.png\n", {"bahamut.png": image})
    assert first.processed == 1

    def broken(*args, **kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(BulkUploadService, "_get_or_create_value", staticmethod(broken))
    csv_text = "name,imageName,attribute\nバハムート2,bahamut.png,闇\n"
    second = BulkUploadService.process(session, storage, "summon", csv_text, {"bahamut.png": image})

    assert second.failed == 1
    assert storage.list() == [first.results[0].image_url]
