from datetime import date
from pydantic import BaseModel, Field
from typing import List, Optional


class CategorySnapshot(BaseModel):
    """标签分类快照"""
    id: int
    name: str
    item_type: str
    multiple_select: bool = False
    required: bool = False
    order_index: int = 0


class TagValueSnapshot(BaseModel):
    """标签值快照"""
    id: int
    category_id: int
    value: str
    order_index: int = 0


class TagValueRef(BaseModel):
    """标签值索引条目：value_id -> (category_id, value)"""
    category_id: int
    value: str


class TagRef(BaseModel):
    """物品携带的一个标签关联"""
    category_id: int
    value_id: int


class ItemSnapshot(BaseModel):
    """物品快照（含标签关联）"""
    id: str
    name: str
    category: str
    image_url: Optional[str] = None
    implementation_date: Optional[date] = None
    tags: List[TagRef] = Field(default_factory=list)


class FilterQuery(BaseModel):
    """筛选条件"""
    search_text: str = ""
    owned_only: bool = False
    selected_ids: List[str] = Field(default_factory=list)
    tag_filters: dict[str, List[str]] = Field(default_factory=dict)

    def active_tag_filters(self) -> dict[str, List[str]]:
        """只保留选择了值的筛选键"""
        return {key: values for key, values in self.tag_filters.items() if values}


class FilterGroup(BaseModel):
    """筛选面板中的一组选项"""
    key: str
    label: str
    multiple_select: bool = False
    values: List[str] = Field(default_factory=list)
