"""
用户输入项模型

输入组（InputGroup）包含有序的输入项（InputItem），
输入项类型固定为 text / number / checkbox / radio / select / date
"""
from enum import Enum
from typing import Optional
from datetime import datetime, UTC
from sqlmodel import Field, SQLModel, Column, JSON


class InputItemType(str, Enum):
    """输入项类型"""
    TEXT = "text"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    SELECT = "select"
    DATE = "date"


class InputGroup(SQLModel, table=True):
    """输入组表"""
    __tablename__ = "input_groups"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, description="组名")
    order_index: int = Field(default=0, description="排序序号")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class InputItem(SQLModel, table=True):
    """输入项表"""
    __tablename__ = "input_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="input_groups.id", index=True, description="所属组ID")
    name: str = Field(max_length=100, description="项目名")
    type: str = Field(default="text", max_length=20, description="输入类型")
    required: bool = Field(default=False)
    default_value: Optional[str] = Field(default=None, description="默认值（字符串形式）")
    # radio / select 的可选项
    options: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=True))
    order_index: int = Field(default=0, description="排序序号")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
