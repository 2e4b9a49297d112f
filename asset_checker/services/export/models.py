from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from asset_checker.services.selection import SelectionState


class ExportEntry(BaseModel):
    """导出中的单个物品"""
    id: str
    name: str
    image_url: Optional[str] = None
    count: Optional[int] = None  # 仅武器使用
    awakenings: Dict[str, int] = Field(default_factory=dict)  # 仅武器使用
    note: Optional[str] = None


class ExportOptions(BaseModel):
    """图片 / PDF 中显示哪些部分（CSV 始终包含全部内容）"""
    show_user_info: bool = True
    show_characters: bool = True
    show_weapons: bool = True
    show_summons: bool = True


class ExportItems(BaseModel):
    """按类型分组的导出物品"""
    characters: List[ExportEntry] = Field(default_factory=list)
    weapons: List[ExportEntry] = Field(default_factory=list)
    summons: List[ExportEntry] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.characters or self.weapons or self.summons)


class InputItemSnapshot(BaseModel):
    """输入项快照"""
    id: int
    name: str
    type: str = "text"
    required: bool = False
    default_value: Optional[str] = None
    options: List[str] = Field(default_factory=list)
    order_index: int = 0

    @property
    def key(self) -> str:
        """在 input_values 中使用的键"""
        return str(self.id)


class InputGroupSnapshot(BaseModel):
    """输入组快照（含有序输入项）"""
    id: int
    name: str
    order_index: int = 0
    items: List[InputItemSnapshot] = Field(default_factory=list)


class ImportResult(BaseModel):
    """CSV 导入结果（失败时 state 为传入的原状态）"""
    success: bool
    message: str
    state: SelectionState
    imported_item_ids: List[str] = Field(default_factory=list)
    imported_values: Dict[str, Any] = Field(default_factory=dict)
    unclassified_ids: List[str] = Field(default_factory=list)
    skipped_values: List[str] = Field(default_factory=list)
