"""
图片 / PDF 导出

使用 Pillow 绘制固定版式：
    - 标题
    - 用户信息（每个输入项一行，按输入类型渲染值）
    - 角色 / 武器 / 召唤石 三个缩略图网格（武器带持有数和觉醒徽章，有备注时显示在名称下方）

ExportOptions 可以关闭用户信息或任意分区。

PDF 把整张图按 A4（150dpi）纵向切页，每页底部带生成信息和页码。
缩略图读取失败时绘制占位框，不影响整体导出。
"""
import io
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx
from loguru import logger
from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from asset_checker.services.export.models import ExportEntry, ExportItems, ExportOptions, InputGroupSnapshot
from asset_checker.services.image_storage import ImageStorage
from asset_checker.services.input_fields import get_field_variant

CANVAS_WIDTH = 1600
PADDING = 40
THUMB_SIZE = 160
LABEL_HEIGHT = 44
BADGE_HEIGHT = 26
NOTE_HEIGHT = 26
GRID_GAP = 16
LINE_HEIGHT = 36
SECTION_TITLE_HEIGHT = 64
HEADER_HEIGHT = 110

BACKGROUND = (255, 255, 255)
TEXT_COLOR = (33, 33, 33)
MUTED_COLOR = (117, 117, 117)
PLACEHOLDER_COLOR = (224, 224, 224)
DIVIDER_COLOR = (189, 189, 189)

# 觉醒徽章颜色
AWAKENING_COLORS: Dict[str, Tuple[int, int, int]] = {
    "攻撃": (0xFF, 0x44, 0x44),
    "防御": (0x44, 0xAA, 0xFF),
    "特殊": (0xFF, 0xAA, 0x44),
    "連撃": (0xAA, 0x44, 0xFF),
    "回復": (0x44, 0xFF, 0x44),
    "奥義": (0xFF, 0xFF, 0x44),
    "アビD": (0xFF, 0x44, 0xFF),
}
AWAKENING_DEFAULT_COLOR = (0x88, 0x88, 0x88)

# A4 @150dpi
PDF_DPI = 150
PDF_PAGE_SIZE = (1240, 1754)
PDF_MARGIN = 60
PDF_FOOTER_HEIGHT = 90
FOOTER_BRAND = "granblue-asset-checker"

SECTION_TITLES = (
    ("characters", "キャラ", "show_characters"),
    ("weapons", "武器", "show_weapons"),
    ("summons", "召喚石", "show_summons"),
)


class ExportRenderer:
    """导出渲染器"""

    def __init__(
        self,
        storage: Optional[ImageStorage] = None,
        font_path: str = "",
        timeout: float = 5.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.storage = storage
        self.font_path = font_path
        self.timeout = timeout
        self.http_client = http_client
        self._fonts: Dict[int, Any] = {}

    def _font(self, size: int):
        if size not in self._fonts:
            if self.font_path:
                try:
                    self._fonts[size] = ImageFont.truetype(self.font_path, size)
                except OSError as e:
                    logger.warning(f"字体加载失败，使用默认字体: {e}")
                    self._fonts[size] = ImageFont.load_default(size=size)
            else:
                self._fonts[size] = ImageFont.load_default(size=size)
        return self._fonts[size]

    def _fetch_image_bytes(self, url: str) -> Optional[bytes]:
        if self.storage is not None:
            data = self.storage.read(url)
            if data is not None:
                return data
        if not url.startswith(("http://", "https://")):
            return None
        if self.http_client is not None:
            response = self.http_client.get(url, timeout=self.timeout)
        else:
            response = httpx.get(url, timeout=self.timeout, follow_redirects=True)
        response.raise_for_status()
        return response.content

    def load_thumbnail(self, url: Optional[str]) -> Optional[Image.Image]:
        """读取并缩放缩略图，失败返回 None"""
        if not url:
            return None
        try:
            data = self._fetch_image_bytes(url)
            if data is None:
                return None
            with Image.open(io.BytesIO(data)) as source:
                thumbnail = source.convert("RGB")
            thumbnail.thumbnail((THUMB_SIZE, THUMB_SIZE))
            return thumbnail
        except (httpx.HTTPError, UnidentifiedImageError, OSError) as e:
            logger.warning(f"缩略图读取失败 {url}: {e}")
            return None

    def _grid_columns(self) -> int:
        usable = CANVAS_WIDTH - PADDING * 2 + GRID_GAP
        return max(1, usable // (THUMB_SIZE + GRID_GAP))

    @staticmethod
    def _cell_height(entries: List[ExportEntry]) -> int:
        """网格单元高度：有觉醒或备注的分区为每个单元额外留一行"""
        height = THUMB_SIZE + LABEL_HEIGHT
        if any(entry.awakenings for entry in entries):
            height += BADGE_HEIGHT
        if any(entry.note for entry in entries):
            height += NOTE_HEIGHT
        return height

    def _section_height(self, entries: List[ExportEntry]) -> int:
        if not entries:
            return SECTION_TITLE_HEIGHT + LINE_HEIGHT
        rows = -(-len(entries) // self._grid_columns())
        return SECTION_TITLE_HEIGHT + rows * (self._cell_height(entries) + GRID_GAP)

    @staticmethod
    def user_info_lines(
        input_groups: Iterable[InputGroupSnapshot],
        input_values: Dict[str, Any],
    ) -> List[Tuple[str, str]]:
        """用户信息行：(项目名, 渲染后的值)"""
        lines: List[Tuple[str, str]] = []
        for group in sorted(input_groups, key=lambda g: (g.order_index, g.id)):
            for input_item in sorted(group.items, key=lambda i: (i.order_index, i.id)):
                variant = get_field_variant(input_item.type)
                lines.append((input_item.name, variant.render(input_values.get(input_item.key))))
        return lines

    def render_image(
        self,
        items: ExportItems,
        input_groups: Iterable[InputGroupSnapshot],
        input_values: Dict[str, Any],
        options: Optional[ExportOptions] = None,
        title: str = "Granblue Asset Checker",
    ) -> Image.Image:
        """绘制导出图片（options 中关闭的部分不绘制）"""
        options = options or ExportOptions()
        info_lines = self.user_info_lines(input_groups, input_values)
        sections = [
            (label, getattr(items, field))
            for field, label, switch in SECTION_TITLES
            if getattr(options, switch)
        ]

        height = HEADER_HEIGHT
        if options.show_user_info:
            height += SECTION_TITLE_HEIGHT + max(1, len(info_lines)) * LINE_HEIGHT
        height += sum(self._section_height(entries) for _, entries in sections)
        height += PADDING

        canvas = Image.new("RGB", (CANVAS_WIDTH, height), BACKGROUND)
        draw = ImageDraw.Draw(canvas)

        y = PADDING
        draw.text((PADDING, y), title, fill=TEXT_COLOR, font=self._font(40))
        y = HEADER_HEIGHT - 12
        draw.line((PADDING, y, CANVAS_WIDTH - PADDING, y), fill=DIVIDER_COLOR, width=2)
        y += 12

        if options.show_user_info:
            draw.text((PADDING, y + 12), "ユーザー情報", fill=TEXT_COLOR, font=self._font(30))
            y += SECTION_TITLE_HEIGHT
            if not info_lines:
                draw.text((PADDING, y), "-", fill=MUTED_COLOR, font=self._font(24))
                y += LINE_HEIGHT
            for name, value in info_lines:
                draw.text((PADDING, y), f"{name}: {value}", fill=TEXT_COLOR, font=self._font(24))
                y += LINE_HEIGHT

        columns = self._grid_columns()
        for label, entries in sections:
            draw.text((PADDING, y + 12), f"{label} ({len(entries)})", fill=TEXT_COLOR, font=self._font(30))
            y += SECTION_TITLE_HEIGHT
            if not entries:
                draw.text((PADDING, y), "-", fill=MUTED_COLOR, font=self._font(24))
                y += LINE_HEIGHT
                continue

            cell_height = self._cell_height(entries)
            for index, entry in enumerate(entries):
                row, column = divmod(index, columns)
                x = PADDING + column * (THUMB_SIZE + GRID_GAP)
                top = y + row * (cell_height + GRID_GAP)
                self._draw_entry(canvas, draw, entry, x, top)

            rows = -(-len(entries) // columns)
            y += rows * (cell_height + GRID_GAP)

        return canvas

    def _fit_text(self, draw: ImageDraw.ImageDraw, text: str, font) -> str:
        while len(text) > 1 and draw.textlength(text, font=font) > THUMB_SIZE:
            text = text[:-2] + "…"
        return text

    def _draw_entry(self, canvas: Image.Image, draw: ImageDraw.ImageDraw, entry: ExportEntry, x: int, y: int):
        thumbnail = self.load_thumbnail(entry.image_url)
        if thumbnail is None:
            draw.rectangle((x, y, x + THUMB_SIZE, y + THUMB_SIZE), fill=PLACEHOLDER_COLOR)
        else:
            offset_x = x + (THUMB_SIZE - thumbnail.width) // 2
            offset_y = y + (THUMB_SIZE - thumbnail.height) // 2
            canvas.paste(thumbnail, (offset_x, offset_y))

        label = entry.name if entry.count is None else f"{entry.name} ×{entry.count}"
        font = self._font(18)
        draw.text((x, y + THUMB_SIZE + 8), self._fit_text(draw, label, font), fill=TEXT_COLOR, font=font)
        line_y = y + THUMB_SIZE + LABEL_HEIGHT

        if entry.awakenings:
            self._draw_awakenings(draw, entry.awakenings, x, line_y)
            line_y += BADGE_HEIGHT

        if entry.note:
            note = " ".join(entry.note.split())
            draw.text((x, line_y), self._fit_text(draw, note, self._font(16)), fill=MUTED_COLOR, font=self._font(16))

    def _draw_awakenings(self, draw: ImageDraw.ImageDraw, awakenings: Dict[str, int], x: int, y: int):
        """觉醒徽章：{类型}{本数}，超出单元宽度的部分不绘制"""
        font = self._font(14)
        left = x
        for awakening_type, count in awakenings.items():
            text = f"{awakening_type}{count}"
            width = draw.textlength(text, font=font) + 8
            if left + width > x + THUMB_SIZE:
                break
            color = AWAKENING_COLORS.get(awakening_type, AWAKENING_DEFAULT_COLOR)
            draw.rectangle((left, y, left + width, y + BADGE_HEIGHT - 6), fill=color)
            draw.text((left + 4, y + 2), text, fill=TEXT_COLOR, font=font)
            left += width + 4

    def render_png(self, items: ExportItems, input_groups, input_values, options: Optional[ExportOptions] = None) -> bytes:
        buffer = io.BytesIO()
        self.render_image(items, input_groups, input_values, options).save(buffer, format="PNG")
        return buffer.getvalue()

    def paginate(self, snapshot: Image.Image, generated_on: Optional[date] = None) -> List[Image.Image]:
        """把整张图缩放到 A4 宽度并纵向切页"""
        generated_on = generated_on or date.today()
        page_width, page_height = PDF_PAGE_SIZE
        content_width = page_width - PDF_MARGIN * 2
        content_height = page_height - PDF_MARGIN - PDF_FOOTER_HEIGHT

        ratio = content_width / snapshot.width
        scaled = snapshot.resize((content_width, max(1, round(snapshot.height * ratio))))

        slices = range(0, scaled.height, content_height)
        page_count = len(slices)
        pages: List[Image.Image] = []
        for number, top in enumerate(slices, start=1):
            page = Image.new("RGB", PDF_PAGE_SIZE, BACKGROUND)
            page.paste(scaled.crop((0, top, content_width, min(top + content_height, scaled.height))), (PDF_MARGIN, PDF_MARGIN))

            draw = ImageDraw.Draw(page)
            footer = f"Generated by {FOOTER_BRAND} • {generated_on.isoformat()}  ({number}/{page_count})"
            font = self._font(16)
            text_width = draw.textlength(footer, font=font)
            draw.text(((page_width - text_width) / 2, page_height - PDF_FOOTER_HEIGHT / 2), footer, fill=MUTED_COLOR, font=font)
            pages.append(page)
        return pages

    def render_pdf(
        self,
        items: ExportItems,
        input_groups: Iterable[InputGroupSnapshot],
        input_values: Dict[str, Any],
        generated_on: Optional[date] = None,
        options: Optional[ExportOptions] = None,
    ) -> bytes:
        pages = self.paginate(self.render_image(items, input_groups, input_values, options), generated_on)
        buffer = io.BytesIO()
        pages[0].save(buffer, format="PDF", resolution=PDF_DPI, save_all=True, append_images=pages[1:])
        return buffer.getvalue()
