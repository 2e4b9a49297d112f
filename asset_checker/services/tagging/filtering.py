"""
筛选引擎

三个条件独立判断后取 AND：
    1. 名称包含搜索词（不区分大小写的子串匹配）
    2. 只看已拥有时，ID 必须在已选集合中
    3. 每个有选择值的筛选键：物品在该键下的值与选择值有交集（键内 OR，键间 AND）

输出保持输入顺序
"""
from datetime import date
from typing import List, Optional, Sequence, TypeVar

from asset_checker.services.tagging.models import FilterQuery, ItemSnapshot
from asset_checker.services.tagging.taxonomy import Taxonomy

T = TypeVar("T", bound=ItemSnapshot)


def matches_search(item: ItemSnapshot, search_text: str) -> bool:
    if not search_text:
        return True
    return search_text.lower() in item.name.lower()


def matches_ownership(item: ItemSnapshot, owned_only: bool, selected_ids: set) -> bool:
    if not owned_only:
        return True
    return item.id in selected_ids


def matches_tags(item: ItemSnapshot, active_filters: dict, taxonomy: Optional[Taxonomy]) -> bool:
    if not active_filters:
        return True
    if taxonomy is None:
        # 有标签筛选却没有标签体系，任何物品都无法命中
        return False

    tag_data = taxonomy.project(item)
    for filter_key, selected_values in active_filters.items():
        item_values = tag_data.get(filter_key, set())
        if not item_values.intersection(selected_values):
            return False
    return True


def filter_items(
    items: Sequence[T],
    query: FilterQuery,
    taxonomy: Optional[Taxonomy] = None,
) -> List[T]:
    """按筛选条件过滤物品列表"""
    selected_ids = set(query.selected_ids)
    active_filters = query.active_tag_filters()

    return [
        item
        for item in items
        if matches_search(item, query.search_text)
        and matches_ownership(item, query.owned_only, selected_ids)
        and matches_tags(item, active_filters, taxonomy)
    ]


def sort_items(items: Sequence[T]) -> List[T]:
    """按实装日期倒序（无日期排最后）、名称升序排序"""
    by_name = sorted(items, key=lambda item: item.name)
    return sorted(
        by_name,
        key=lambda item: (item.implementation_date is None, -(item.implementation_date or date.min).toordinal()),
    )
