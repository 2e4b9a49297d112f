"""
标签体系快照

每次请求从数据库读取一次某个物品类型的分类和标签值，
预先计算筛选键映射和标签值索引，之后只读使用
"""
from typing import Dict, Iterable, List, Set

from asset_checker.services.tagging.key_map import build_category_key_map
from asset_checker.services.tagging.models import (
    CategorySnapshot,
    FilterGroup,
    ItemSnapshot,
    TagValueSnapshot,
)
from asset_checker.services.tagging.projection import build_tag_value_index, project_item_tags


class Taxonomy:
    """某个物品类型的标签体系（只读）"""

    def __init__(
        self,
        categories: Iterable[CategorySnapshot],
        values: Iterable[TagValueSnapshot],
    ):
        self.categories: List[CategorySnapshot] = sorted(categories, key=lambda c: (c.order_index, c.id))
        self.values: List[TagValueSnapshot] = sorted(values, key=lambda v: (v.order_index, v.id))
        self.value_index = build_tag_value_index(self.values)
        self.key_map = build_category_key_map(self.categories)

    def project(self, item: ItemSnapshot) -> Dict[str, Set[str]]:
        """物品的 {筛选键: 值集合}"""
        return project_item_tags(item, self.categories, self.value_index, self.key_map)

    def filter_groups(self) -> List[FilterGroup]:
        """
        筛选面板的选项分组

        同名分类合并为一组，值按分类顺序、值顺序去重排列
        """
        groups: Dict[str, FilterGroup] = {}
        for category in self.categories:
            key = self.key_map[category.id]
            group = groups.get(key)
            if group is None:
                group = FilterGroup(
                    key=key,
                    label=category.name.strip(),
                    multiple_select=category.multiple_select,
                )
                groups[key] = group
            else:
                group.multiple_select = group.multiple_select or category.multiple_select

            for value in self.values:
                if value.category_id == category.id and value.value not in group.values:
                    group.values.append(value.value)

        return list(groups.values())
