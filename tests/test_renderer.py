import io
from datetime import date

from PIL import Image

from asset_checker.services.export.models import (
    ExportEntry,
    ExportItems,
    ExportOptions,
    InputGroupSnapshot,
    InputItemSnapshot,
)
from asset_checker.services.export.renderer import (
    AWAKENING_COLORS,
    BADGE_HEIGHT,
    LINE_HEIGHT,
    NOTE_HEIGHT,
    PDF_PAGE_SIZE,
    SECTION_TITLE_HEIGHT,
    ExportRenderer,
)

GROUPS = [
    InputGroupSnapshot(
        id=1,
        name="基本情報",
        items=[
            InputItemSnapshot(id=1, name="Rank", type="number", order_index=1),
            InputItemSnapshot(id=2, name="Joined", type="checkbox", order_index=2),
            InputItemSnapshot(id=3, name="Memo", type="text", order_index=3),
        ],
    )
]


def test_user_info_lines_use_field_rendering():
    lines = ExportRenderer.user_info_lines(GROUPS, {"1": 250, "2": True})
    assert lines == [("Rank", "250"), ("Joined", "✅"), ("Memo", "-")]


def test_render_png_with_local_and_missing_thumbnails(storage, png):
    url = storage.put("gran.png", png())
    items = ExportItems(
        characters=[
            ExportEntry(id="character_1", name="Gran", image_url=url),
            ExportEntry(id="character_2", name="Katalina", image_url="/uploads/missing.png"),
        ],
        weapons=[ExportEntry(id="weapon_1", name="Murgleis", count=3)],
    )
    renderer = ExportRenderer(storage)

    data = renderer.render_png(items, GROUPS, {"1": 250})

    assert data.startswith(b"\x89PNG")
    with Image.open(io.BytesIO(data)) as image:
        assert image.width == 1600
    assert renderer.load_thumbnail(url) is not None
    assert renderer.load_thumbnail("/uploads/missing.png") is None


def test_unreachable_remote_thumbnail_is_tolerated(storage):
    renderer = ExportRenderer(storage, timeout=0.1)
    assert renderer.load_thumbnail("http://127.0.0.1:9/none.png") is None


def test_pagination():
    renderer = ExportRenderer()
    pages = renderer.paginate(Image.new("RGB", (1600, 5000), "white"), date(2024, 1, 31))
    assert len(pages) == 3
    assert all(page.size == PDF_PAGE_SIZE for page in pages)


def test_render_pdf(storage):
    renderer = ExportRenderer(storage)
    data = renderer.render_pdf(ExportItems(), GROUPS, {}, date(2024, 1, 31))
    assert data.startswith(b"%PDF")


def test_hidden_sections_are_not_drawn():
    renderer = ExportRenderer()
    full = renderer.render_image(ExportItems(), GROUPS, {})
    options = ExportOptions(show_user_info=False, show_characters=False, show_summons=False)

    partial = renderer.render_image(ExportItems(), GROUPS, {}, options)

    user_info = SECTION_TITLE_HEIGHT + 3 * LINE_HEIGHT
    empty_section = SECTION_TITLE_HEIGHT + LINE_HEIGHT
    assert partial.height == full.height - user_info - 2 * empty_section


def test_awakenings_and_notes_extend_cells():
    renderer = ExportRenderer()
    plain = ExportItems(weapons=[ExportEntry(id="weapon_1", name="Murgleis", count=3)])
    detailed = ExportItems(
        weapons=[
            ExportEntry(
                id="weapon_1",
                name="Murgleis",
                count=3,
                awakenings={"攻撃": 2, "防御": 1},
                note="4凸済み",
            )
        ]
    )

    plain_image = renderer.render_image(plain, [], {})
    detailed_image = renderer.render_image(detailed, [], {})

    assert detailed_image.height == plain_image.height + BADGE_HEIGHT + NOTE_HEIGHT
    colors = {color for _, color in detailed_image.getcolors(detailed_image.width * detailed_image.height)}
    assert AWAKENING_COLORS["攻撃"] in colors
    assert AWAKENING_COLORS["防御"] in colors


def test_render_png_accepts_options(storage):
    renderer = ExportRenderer(storage)
    data = renderer.render_png(ExportItems(), GROUPS, {}, ExportOptions(show_weapons=False))
    assert data.startswith(b"\x89PNG")
