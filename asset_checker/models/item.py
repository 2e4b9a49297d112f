"""
物品模型
用于存储角色、武器、召唤石及其标签关联

物品ID格式：<item_type>_<12位十六进制>，例如 character_1a2b3c4d5e6f
CSV 导入时依靠该前缀判断物品类型
"""
import uuid
from typing import Optional
from datetime import date, datetime, UTC
from sqlmodel import Field, SQLModel


def generate_item_id(item_type: str) -> str:
    """生成带类型前缀的物品ID"""
    return f"{item_type}_{uuid.uuid4().hex[:12]}"


class Item(SQLModel, table=True):
    """物品表"""
    __tablename__ = "items"

    id: str = Field(primary_key=True, max_length=64)
    name: str = Field(max_length=200, description="名称")
    category: str = Field(max_length=20, index=True, description="物品类型")
    image_url: Optional[str] = Field(default=None, max_length=500, description="图片地址（上传前为空）")
    implementation_date: date = Field(default_factory=date.today, index=True, description="实装日期")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ItemTag(SQLModel, table=True):
    """物品-标签值关联表 - 多对多关系"""
    __tablename__ = "item_tags"

    item_id: str = Field(foreign_key="items.id", primary_key=True, description="物品ID")
    tag_value_id: int = Field(foreign_key="tag_values.id", primary_key=True, description="标签值ID")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
