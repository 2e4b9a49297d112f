"""
分享会话模型

保存用户的输入项值和已选物品，通过 ?session=<id> 分享
创建后不可修改，也没有过期时间
"""
import uuid
from datetime import datetime, UTC
from sqlmodel import Field, SQLModel, Column, JSON


class UserSession(SQLModel, table=True):
    """分享会话表"""
    __tablename__ = "user_sessions"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True, max_length=36)
    input_values: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    selected_items: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
