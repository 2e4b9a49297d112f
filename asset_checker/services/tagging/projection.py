"""
物品标签投影

把物品的 {category_id, value_id} 关联转换为 {筛选键: 值集合}，
供筛选面板和导出共同使用
"""
from typing import Dict, Iterable, Mapping, Set

from asset_checker.services.tagging.models import (
    CategorySnapshot,
    ItemSnapshot,
    TagValueRef,
    TagValueSnapshot,
)


def build_tag_value_index(values: Iterable[TagValueSnapshot]) -> Dict[int, TagValueRef]:
    """构建 value_id -> TagValueRef 索引"""
    return {
        value.id: TagValueRef(category_id=value.category_id, value=value.value)
        for value in values
    }


def project_item_tags(
    item: ItemSnapshot,
    categories: Iterable[CategorySnapshot],
    tag_value_index: Mapping[int, TagValueRef],
    category_key_map: Mapping[int, str],
) -> Dict[str, Set[str]]:
    """
    生成物品的标签数据

    以下关联会被静默跳过（不会抛异常）：
        - 分类不在 categories 中（已删除或属于其他物品类型）
        - 分类没有对应的筛选键
        - 标签值在索引中不存在（悬空引用）
    """
    known_category_ids = {category.id for category in categories}
    tag_data: Dict[str, Set[str]] = {}

    for tag in item.tags:
        if tag.category_id not in known_category_ids:
            continue

        filter_key = category_key_map.get(tag.category_id)
        if not filter_key:
            continue

        value_ref = tag_value_index.get(tag.value_id)
        if value_ref is None or not value_ref.value:
            continue

        tag_data.setdefault(filter_key, set()).add(value_ref.value)

    return tag_data
