"""
CSV 导出 / 导入

文件结构（UTF-8 带 BOM，逗号分隔）：

    #GRANBLUE_CHECKER_DATA_FORMAT_V1
    #EXPORT_DATE,<ISO 时间>
    <空行>
    #SECTION,ITEMS
    type,id,name,count
    character,<id>,<名称>,
    weapon,<id>,<名称>,<持有数>
    summon,<id>,<名称>,
    <空行>
    #SECTION,USER_INFO
    groupId,groupName,itemId,itemName,itemType,value
    ...

导入时第一行是版本标记则按分段解析，否则按旧格式处理：
任何 3 列以上且第 2 列非空的行都视为物品行。
"""
import csv
import io
from datetime import date, datetime, UTC
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from asset_checker.models.item_type import ItemType
from asset_checker.services.export.models import ExportItems, ImportResult, InputGroupSnapshot
from asset_checker.services.input_fields import get_field_variant, infer_item_type, stringify_value
from asset_checker.services.selection import SelectionState, classify_item_id

FORMAT_MARKER = "#GRANBLUE_CHECKER_DATA_FORMAT_V1"
EXPORT_DATE_MARKER = "#EXPORT_DATE"
SECTION_MARKER = "#SECTION"
SECTION_ITEMS = "ITEMS"
SECTION_USER_INFO = "USER_INFO"

ITEMS_HEADER = ["type", "id", "name", "count"]
USER_INFO_HEADER = ["groupId", "groupName", "itemId", "itemName", "itemType", "value"]

UTF8_BOM = "\ufeff"
FILENAME_PREFIX = "granblue-asset-checker"


def export_filename(extension: str, today: Optional[date] = None) -> str:
    """导出文件名，例如 granblue-asset-checker-2024-01-31.csv"""
    today = today or date.today()
    return f"{FILENAME_PREFIX}-{today.isoformat()}.{extension}"


def build_csv_rows(
    items: ExportItems,
    input_groups: Iterable[InputGroupSnapshot],
    input_values: Dict[str, Any],
    exported_at: Optional[datetime] = None,
) -> List[List[str]]:
    """构建导出用的行数据"""
    exported_at = exported_at or datetime.now(UTC)
    rows: List[List[str]] = [
        [FORMAT_MARKER],
        [EXPORT_DATE_MARKER, exported_at.isoformat()],
        [],
        [SECTION_MARKER, SECTION_ITEMS],
        list(ITEMS_HEADER),
    ]

    for entry in items.characters:
        rows.append([ItemType.CHARACTER.value, entry.id, entry.name, ""])
    for entry in items.weapons:
        rows.append([ItemType.WEAPON.value, entry.id, entry.name, str(entry.count or 0)])
    for entry in items.summons:
        rows.append([ItemType.SUMMON.value, entry.id, entry.name, ""])

    rows.append([])
    rows.append([SECTION_MARKER, SECTION_USER_INFO])
    rows.append(list(USER_INFO_HEADER))

    written_keys = set()
    for group in sorted(input_groups, key=lambda g: (g.order_index, g.id)):
        for input_item in sorted(group.items, key=lambda i: (i.order_index, i.id)):
            value = input_values.get(input_item.key)
            if value is None:
                continue
            variant = get_field_variant(input_item.type)
            rows.append([
                str(group.id),
                group.name,
                input_item.key,
                input_item.name,
                input_item.type,
                variant.stringify(value),
            ])
            written_keys.add(input_item.key)

    # 没有输入项定义的值也写出，类型由值推断
    for key, value in input_values.items():
        if key in written_keys or value is None:
            continue
        rows.append(["", "", key, "", infer_item_type(value).value, stringify_value(value)])

    return rows


def export_csv(
    items: ExportItems,
    input_groups: Iterable[InputGroupSnapshot],
    input_values: Dict[str, Any],
    exported_at: Optional[datetime] = None,
) -> str:
    """导出为 CSV 文本（不含 BOM）"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerows(build_csv_rows(items, input_groups, input_values, exported_at))
    return buffer.getvalue()


def export_csv_bytes(
    items: ExportItems,
    input_groups: Iterable[InputGroupSnapshot],
    input_values: Dict[str, Any],
    exported_at: Optional[datetime] = None,
) -> bytes:
    """导出为带 BOM 的 UTF-8 字节"""
    return (UTF8_BOM + export_csv(items, input_groups, input_values, exported_at)).encode("utf-8")


def _is_items_header(row: List[str]) -> bool:
    return row[0].strip().lower() in ("type", "タイプ") or row[1].strip().lower() == "id"


def _is_user_info_header(row: List[str]) -> bool:
    return row[0].strip() in ("groupId", "グループID") or row[2].strip() in ("itemId", "項目ID")


def _parse_input_value(item_type: str, raw: str) -> Any:
    """按输入类型解析 CSV 中的值，无法解析时抛出 ValueError"""
    return get_field_variant(item_type).parse(raw)


def parse_csv_rows(text: str) -> List[List[str]]:
    """解析为行列表，格式错误时抛出 csv.Error"""
    if text.startswith(UTF8_BOM):
        text = text[len(UTF8_BOM):]
    return list(csv.reader(io.StringIO(text, newline=""), strict=True))


def import_csv(text: str, state: SelectionState) -> ImportResult:
    """
    导入 CSV 并合并到选择状态

    物品ID按前缀分桶后与现有选择取并集，输入项值按键覆盖。
    无法按类型解析的值不覆盖原值，其键记录在 skipped_values 中。
    失败时返回 success=False，原状态保持不变；不会抛出异常。
    """
    try:
        rows = parse_csv_rows(text)
    except csv.Error as e:
        logger.warning(f"CSV 解析失败: {e}")
        return ImportResult(success=False, message="CSV 解析失败", state=state)

    non_empty_rows = [row for row in rows if any(cell.strip() for cell in row)]
    imported_ids: List[str] = []
    imported_values: Dict[str, Any] = {}
    weapon_counts: Dict[str, int] = {}
    skipped_keys: List[str] = []

    is_versioned = bool(non_empty_rows) and non_empty_rows[0][0].strip() == FORMAT_MARKER

    if is_versioned:
        current_section = ""
        for row in non_empty_rows[1:]:
            if row[0].strip() == SECTION_MARKER and len(row) > 1:
                current_section = row[1].strip()
                continue

            if current_section == SECTION_ITEMS and len(row) >= 3:
                if _is_items_header(row):
                    continue
                item_id = row[1].strip()
                if item_id and not item_id.startswith("#"):
                    imported_ids.append(item_id)
                    count = row[3].strip() if len(row) >= 4 else ""
                    if row[0].strip() == ItemType.WEAPON.value and count.isdigit():
                        weapon_counts[item_id] = int(count)

            elif current_section == SECTION_USER_INFO and len(row) >= 6:
                if _is_user_info_header(row):
                    continue
                item_key = row[2].strip()
                if item_key and not item_key.startswith("#"):
                    try:
                        value = _parse_input_value(row[4].strip(), row[5])
                    except ValueError:
                        # 保留原有的值
                        logger.warning(f"无法解析输入值，已跳过: key={item_key}, type={row[4].strip()}, value={row[5]!r}")
                        skipped_keys.append(item_key)
                        continue
                    if value is not None:
                        imported_values[item_key] = value
    else:
        logger.info("未检测到格式版本标记，按旧格式导入")
        for row in non_empty_rows:
            if len(row) < 3 or _is_items_header(row):
                continue
            item_id = row[1].strip()
            if item_id and not item_id.startswith("#"):
                imported_ids.append(item_id)

    if not imported_ids and not imported_values:
        return ImportResult(
            success=False,
            message="没有找到可导入的数据",
            state=state,
            skipped_values=list(dict.fromkeys(skipped_keys)),
        )

    new_state = state.model_copy(deep=True)
    buckets: Dict[ItemType, List[str]] = {item_type: [] for item_type in ItemType}
    unclassified: List[str] = []
    for item_id in imported_ids:
        item_type, recognized = classify_item_id(item_id)
        if not recognized:
            unclassified.append(item_id)
        buckets[item_type].append(item_id)

    if unclassified:
        logger.warning(f"{len(unclassified)} 个ID没有类型前缀，已按角色处理: {unclassified[:5]}")

    for item_type, item_ids in buckets.items():
        if item_ids:
            new_state.merge_selected(item_type, item_ids)
    if weapon_counts:
        new_state.weapon_counts = {**new_state.weapon_counts, **weapon_counts}
    if imported_values:
        new_state.merge_input_values(imported_values)

    unique_ids = list(dict.fromkeys(imported_ids))
    if unique_ids and imported_values:
        message = f"已导入 {len(unique_ids)} 个物品和 {len(imported_values)} 项用户信息"
    elif unique_ids:
        message = f"已导入 {len(unique_ids)} 个物品"
    else:
        message = f"已导入 {len(imported_values)} 项用户信息"
    skipped = list(dict.fromkeys(skipped_keys))
    if skipped:
        message += f"，{len(skipped)} 项用户信息无法解析已跳过"

    logger.info(message)
    return ImportResult(
        success=True,
        message=message,
        state=new_state,
        imported_item_ids=unique_ids,
        imported_values=imported_values,
        unclassified_ids=list(dict.fromkeys(unclassified)),
        skipped_values=skipped,
    )
