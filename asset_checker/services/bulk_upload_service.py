"""
批量上传服务

输入：
    - 物品类型
    - CSV 文本（第一行为表头，name / imageName / implementationDate 之外的列视为标签列）
    - 上传的图片 {文件名: 内容}

处理：
    逐行处理，每行独立提交：
        1. 按 imageName 精确匹配图片，找不到则该行失败
        2. 标签列按 CSV_HEADER_CATEGORY_NAMES 找到分类（找不到时按筛选键匹配），
           weapons 列用 | 分隔多个值；单选分类出现多个值时该行失败
        3. 保存图片，写入物品，标签值不存在则新建
    某一行失败只回滚该行（并删除该行新保存的图片），不影响其他行

输出：
    {success, results, errors, total, processed, failed}
"""
import csv
import io
from datetime import date
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, Field
from sqlmodel import Session, select, func

from asset_checker.models import Item, ItemTag, ItemType, TagValue, generate_item_id
from asset_checker.services.export.csv_format import UTF8_BOM
from asset_checker.services.image_storage import ImageStorage
from asset_checker.services.tagging import CategorySnapshot, normalize_filter_key
from asset_checker.services.taxonomy_service import TagCategoryService, category_snapshot

# 非标签列
NAME_COLUMN = "name"
IMAGE_COLUMN = "imageName"
DATE_COLUMN = "implementationDate"
RESERVED_COLUMNS = (NAME_COLUMN, IMAGE_COLUMN, DATE_COLUMN)

MULTI_VALUE_COLUMNS = ("weapons",)
MULTI_VALUE_SEPARATOR = "|"

# CSV 表头 -> 标签分类显示名
CSV_HEADER_CATEGORY_NAMES: Dict[str, str] = {
    "attribute": "属性",
    "rarity": "レアリティ",
    "type": "タイプ",
    "race": "種族",
    "gender": "性別",
    "weapons": "得意武器",
    "releaseWeapon": "解放武器",
    "obtainMethod": "入手方法",
    "weaponType": "武器種",
}

# 模板：表头 / 填写说明 / 示例
CSV_TEMPLATES: Dict[ItemType, Dict[str, str]] = {
    ItemType.CHARACTER: {
        "header": "name,imageName,attribute,rarity,type,race,gender,weapons,releaseWeapon,obtainMethod,implementationDate",
        "description": "キャラ名,画像ファイル名.jpg,火/水/土/風/光/闇,SSR/SR/R,攻撃/防御/回復/バランス/特殊,"
                       "ヒューマン/ドラフ/エルーン/ハーヴィン/その他/星晶獣,♂/♀/不明,剣|槍|斧|弓|杖|短剣|格闘|銃|刀|楽器,"
                       "剣/槍/斧/弓/杖/短剣/格闘/銃/刀/楽器,恒常/リミテッド/季節限定/コラボ/その他,YYYY-MM-DD",
        "example": "グラン,gran.jpg,火,SSR,バランス,ヒューマン,♂,剣,剣,恒常,2014-03-10",
    },
    ItemType.WEAPON: {
        "header": "name,imageName,attribute,weaponType,rarity,implementationDate",
        "description": "武器名,画像ファイル名.jpg,火/水/土/風/光/闇,剣/槍/斧/弓/杖/短剣/格闘/銃/刀/楽器,SSR/SR/R,YYYY-MM-DD",
        "example": "ミュルグレス,murgleis.jpg,水,剣,SSR,2016-07-09",
    },
    ItemType.SUMMON: {
        "header": "name,imageName,attribute,rarity,implementationDate",
        "description": "召喚石名,画像ファイル名.jpg,火/水/土/風/光/闇,SSR/SR/R,YYYY-MM-DD",
        "example": "バハムート,bahamut.jpg,闇,SSR,2014-03-10",
    },
}


def template_csv(item_type: str) -> str:
    """模板文件内容"""
    template = CSV_TEMPLATES[ItemType(item_type)]
    return "\n".join((template["header"], template["description"], template["example"]))


def template_filename(item_type: str) -> str:
    return f"{ItemType(item_type).value}_template.csv"


class BulkUploadRow(BaseModel):
    """成功写入的行"""
    id: str
    name: str
    image_url: Optional[str] = None
    category: str


class BulkUploadError(BaseModel):
    """失败的行"""
    record: Dict[str, Any]
    error: str


class BulkUploadResult(BaseModel):
    success: bool = True
    results: List[BulkUploadRow] = Field(default_factory=list)
    errors: List[BulkUploadError] = Field(default_factory=list)
    total: int = 0
    processed: int = 0
    failed: int = 0


class BulkUploadRowError(Exception):
    """单行处理失败（可预期的原因，例如图片缺失）"""


def parse_records(csv_text: str) -> List[Dict[str, str]]:
    """解析为 {表头: 值} 列表，去掉首尾空白并跳过空行"""
    if csv_text.startswith(UTF8_BOM):
        csv_text = csv_text[len(UTF8_BOM):]
    reader = csv.DictReader(io.StringIO(csv_text, newline=""))
    records = []
    for row in reader:
        record = {
            (key or "").strip(): (value or "").strip()
            for key, value in row.items()
            if key is not None and not isinstance(value, list)
        }
        if any(record.values()):
            records.append(record)
    return records


def resolve_category(header: str, categories: List[CategorySnapshot]) -> Optional[CategorySnapshot]:
    """表头 -> 标签分类：先查映射表，再按筛选键匹配"""
    category_name = CSV_HEADER_CATEGORY_NAMES.get(header)
    if category_name:
        for category in categories:
            if category.name == category_name:
                return category

    header_key = normalize_filter_key(header)
    for category in categories:
        if normalize_filter_key(category.name) == header_key:
            return category
    return None


class BulkUploadService:
    """批量上传服务"""

    @staticmethod
    def _get_or_create_value(session: Session, category_id: int, value: str) -> TagValue:
        """查找或新建标签值（只 flush，不提交）"""
        tag_value = session.exec(
            select(TagValue).where(TagValue.category_id == category_id, TagValue.value == value)
        ).first()
        if tag_value:
            return tag_value

        max_order = session.exec(
            select(func.max(TagValue.order_index)).where(TagValue.category_id == category_id)
        ).one()
        tag_value = TagValue(category_id=category_id, value=value, order_index=(max_order or 0) + 1)
        session.add(tag_value)
        session.flush()
        logger.info(f"批量上传新建标签值: category={category_id}, value={value}")
        return tag_value

    @staticmethod
    def _process_record(
        session: Session,
        storage: ImageStorage,
        item_type: ItemType,
        categories: List[CategorySnapshot],
        record: Dict[str, str],
        images: Dict[str, bytes],
    ) -> BulkUploadRow:
        name = record.get(NAME_COLUMN, "")
        if not name:
            raise BulkUploadRowError("name is required")

        image_name = record.get(IMAGE_COLUMN, "")
        image_data = images.get(image_name) if image_name else None
        if image_data is None:
            raise BulkUploadRowError(f"Image file not found for {image_name}")

        raw_date = record.get(DATE_COLUMN, "")
        try:
            implementation_date = date.fromisoformat(raw_date) if raw_date else date.today()
        except ValueError:
            raise BulkUploadRowError(f"Invalid implementationDate: {raw_date}")

        tag_values = BulkUploadService._collect_tag_values(categories, record)

        image_url = storage.url_for(image_name, image_data)
        image_is_new = not storage.exists(image_url)
        storage.put(image_name, image_data)

        try:
            item = Item(
                id=generate_item_id(item_type.value),
                name=name,
                category=item_type.value,
                image_url=image_url,
                implementation_date=implementation_date,
            )
            session.add(item)
            session.flush()

            attached = set()
            for category_id, values in tag_values.items():
                for value in values:
                    tag_value = BulkUploadService._get_or_create_value(session, category_id, value)
                    if tag_value.id in attached:
                        continue
                    session.add(ItemTag(item_id=item.id, tag_value_id=tag_value.id))
                    attached.add(tag_value.id)

            row = BulkUploadRow(id=item.id, name=item.name, image_url=item.image_url, category=item.category)
            session.commit()
        except Exception:
            # 同内容的图片可能已被其他物品引用，只删除本行新写入的文件
            if image_is_new:
                storage.delete(image_url)
            raise
        return row

    @staticmethod
    def _collect_tag_values(categories: List[CategorySnapshot], record: Dict[str, str]) -> Dict[int, List[str]]:
        """
        标签列 -> {分类ID: [标签值]}

        单选分类收集到多个不同的值时整行失败
        """
        collected: Dict[int, List[str]] = {}
        for header, raw_value in record.items():
            if header in RESERVED_COLUMNS or not raw_value:
                continue

            category = resolve_category(header, categories)
            if category is None:
                logger.debug(f"CSV 列没有对应的标签分类: {header}")
                continue

            if header in MULTI_VALUE_COLUMNS:
                values = [part.strip() for part in raw_value.split(MULTI_VALUE_SEPARATOR) if part.strip()]
            else:
                values = [raw_value]

            category_values = collected.setdefault(category.id, [])
            for value in values:
                if value not in category_values:
                    category_values.append(value)

            if not category.multiple_select and len(category_values) > 1:
                raise BulkUploadRowError(
                    f"{category.name} accepts only one value: {MULTI_VALUE_SEPARATOR.join(category_values)}"
                )
        return collected

    @staticmethod
    def process(
        session: Session,
        storage: ImageStorage,
        item_type: str,
        csv_text: str,
        images: Dict[str, bytes],
    ) -> BulkUploadResult:
        """
        执行批量上传

        Raises:
            csv.Error: CSV 无法解析（整体失败）
            ValueError: 物品类型无效
        """
        item_type = ItemType(item_type)
        records = parse_records(csv_text)
        categories = [category_snapshot(category) for category in TagCategoryService.list_categories(session, item_type)]

        result = BulkUploadResult(total=len(records))
        for record in records:
            try:
                row = BulkUploadService._process_record(session, storage, item_type, categories, record, images)
                result.results.append(row)
            except BulkUploadRowError as e:
                session.rollback()
                logger.warning(f"批量上传跳过 {record.get(NAME_COLUMN)}: {e}")
                result.errors.append(BulkUploadError(record=record, error=str(e)))
            except Exception as e:
                session.rollback()
                logger.error(f"批量上传写入失败 {record.get(NAME_COLUMN)}: {e}")
                result.errors.append(BulkUploadError(record=record, error=str(e)))

        result.processed = len(result.results)
        result.failed = len(result.errors)
        logger.info(f"批量上传完成: total={result.total}, processed={result.processed}, failed={result.failed}")
        return result
