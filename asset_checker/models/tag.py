"""
标签模型

标签分类（TagCategory）按物品类型划分，每个分类下有若干标签值（TagValue）

字段说明：
    - item_type: 分类适用的物品类型（character / weapon / summon）
    - multiple_select: 是否允许一个物品携带该分类下的多个值
    - required: 物品是否必须携带该分类的值（仅供表单提示）
    - order_index: 排序序号，在同一 item_type 内从 1 开始递增

注意事项：
    - 删除分类时会级联删除其标签值以及引用这些值的物品标签
    - 同一分类下的标签值文本不允许重复（由 TagValueService 在写入时检查）
"""
from typing import Optional
from datetime import datetime, UTC
from sqlmodel import Field, SQLModel


class TagCategory(SQLModel, table=True):
    """标签分类表"""
    __tablename__ = "tag_categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=50, description="分类名称（显示用）")
    item_type: str = Field(max_length=20, index=True, description="物品类型")
    multiple_select: bool = Field(default=False, description="是否多选")
    required: bool = Field(default=False, description="是否必填")
    order_index: int = Field(default=0, description="排序序号")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class TagValue(SQLModel, table=True):
    """标签值表"""
    __tablename__ = "tag_values"

    id: Optional[int] = Field(default=None, primary_key=True)
    category_id: int = Field(foreign_key="tag_categories.id", index=True, description="所属分类ID")
    value: str = Field(max_length=50, description="标签值")
    order_index: int = Field(default=0, description="排序序号")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
