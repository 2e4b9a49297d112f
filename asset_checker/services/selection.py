"""
选择状态

保存用户当前的已选物品（按类型分桶）、武器持有数与觉醒、各物品备注和输入项值。
状态对象显式传递给需要它的流程（导入、导出、分享），不存在全局实例。
"""
from typing import Any, Dict, Iterable, List, Tuple

from pydantic import BaseModel, Field

from asset_checker.models.item_type import ItemType

ID_PREFIXES: Dict[ItemType, str] = {
    ItemType.CHARACTER: "character_",
    ItemType.WEAPON: "weapon_",
    ItemType.SUMMON: "summon_",
}

# 武器觉醒类型（导出图片按此顺序着色）
AWAKENING_TYPES = ("攻撃", "防御", "特殊", "連撃", "回復", "奥義", "アビD")


def classify_item_id(item_id: str) -> Tuple[ItemType, bool]:
    """
    根据ID前缀判断物品类型

    Returns:
        (物品类型, 是否通过前缀识别)；无前缀的ID归为角色，第二项为 False
    """
    for item_type, prefix in ID_PREFIXES.items():
        if item_id.startswith(prefix):
            return item_type, True
    return ItemType.CHARACTER, False


def merge_unique(current: Iterable[str], incoming: Iterable[str]) -> List[str]:
    """有序并集：保留 current 顺序，追加 incoming 中的新ID"""
    merged = list(dict.fromkeys(current))
    seen = set(merged)
    for item_id in incoming:
        if item_id not in seen:
            merged.append(item_id)
            seen.add(item_id)
    return merged


class SelectionState(BaseModel):
    """用户的选择状态"""
    selected_characters: List[str] = Field(default_factory=list)
    selected_weapons: List[str] = Field(default_factory=list)
    selected_summons: List[str] = Field(default_factory=list)
    weapon_counts: Dict[str, int] = Field(default_factory=dict)
    weapon_awakenings: Dict[str, Dict[str, int]] = Field(default_factory=dict)
    character_notes: Dict[str, str] = Field(default_factory=dict)
    weapon_notes: Dict[str, str] = Field(default_factory=dict)
    summon_notes: Dict[str, str] = Field(default_factory=dict)
    input_values: Dict[str, Any] = Field(default_factory=dict)

    def _field_name(self, item_type: ItemType | str) -> str:
        return f"selected_{ItemType(item_type).value}s"

    def selected(self, item_type: ItemType | str) -> List[str]:
        return list(getattr(self, self._field_name(item_type)))

    def set_selected(self, item_type: ItemType | str, item_ids: Iterable[str]):
        setattr(self, self._field_name(item_type), list(dict.fromkeys(item_ids)))

    def merge_selected(self, item_type: ItemType | str, item_ids: Iterable[str]):
        self.set_selected(item_type, merge_unique(self.selected(item_type), item_ids))

    def toggle(self, item_type: ItemType | str, item_id: str) -> bool:
        """切换选择状态，返回切换后是否选中"""
        current = self.selected(item_type)
        if item_id in current:
            current.remove(item_id)
            self.set_selected(item_type, current)
            return False
        current.append(item_id)
        self.set_selected(item_type, current)
        return True

    def is_selected(self, item_id: str) -> bool:
        return item_id in self.all_selected_ids()

    def all_selected_ids(self) -> List[str]:
        return self.selected_characters + self.selected_weapons + self.selected_summons

    def merge_input_values(self, values: Dict[str, Any]):
        """按键覆盖合并输入项值"""
        self.input_values = {**self.input_values, **values}

    def weapon_count(self, item_id: str) -> int:
        return self.weapon_counts.get(item_id, 0)

    def set_weapon_count(self, item_id: str, count: int) -> int:
        """
        设置武器持有数（小于 0 时按 0 处理），返回实际写入的值

        持有数减少到低于觉醒合计时，从最后写入的觉醒类型开始削减
        """
        count = max(0, int(count))
        self.weapon_counts = {**self.weapon_counts, item_id: count}

        awakenings = self.awakenings(item_id)
        excess = sum(awakenings.values()) - count
        for awakening_type in reversed(list(awakenings)):
            if excess <= 0:
                break
            removed = min(excess, awakenings[awakening_type])
            awakenings[awakening_type] -= removed
            excess -= removed
            if awakenings[awakening_type] == 0:
                del awakenings[awakening_type]
        self._store_awakenings(item_id, awakenings)
        return count

    def awakenings(self, item_id: str) -> Dict[str, int]:
        return dict(self.weapon_awakenings.get(item_id, {}))

    def awakening_total(self, item_id: str) -> int:
        return sum(self.weapon_awakenings.get(item_id, {}).values())

    def set_awakening(self, item_id: str, awakening_type: str, count: int) -> int:
        """
        设置某种觉醒的本数

        所有觉醒类型合计不超过武器持有数，本数为 0 时删除该类型。
        返回实际写入的本数。

        Raises:
            ValueError: 未知的觉醒类型
        """
        if awakening_type not in AWAKENING_TYPES:
            raise ValueError(f"unknown awakening type: {awakening_type}")

        awakenings = self.awakenings(item_id)
        others = self.awakening_total(item_id) - awakenings.get(awakening_type, 0)
        available = max(0, self.weapon_count(item_id) - others)
        valid = max(0, min(available, int(count)))

        if valid == 0:
            awakenings.pop(awakening_type, None)
        else:
            awakenings[awakening_type] = valid
        self._store_awakenings(item_id, awakenings)
        return valid

    def _store_awakenings(self, item_id: str, awakenings: Dict[str, int]):
        updated = dict(self.weapon_awakenings)
        if awakenings:
            updated[item_id] = awakenings
        else:
            updated.pop(item_id, None)
        self.weapon_awakenings = updated

    def _notes_field(self, item_type: ItemType | str) -> str:
        return f"{ItemType(item_type).value}_notes"

    def note(self, item_type: ItemType | str, item_id: str) -> str:
        return getattr(self, self._notes_field(item_type)).get(item_id, "")

    def set_note(self, item_type: ItemType | str, item_id: str, text: str):
        """保存备注，空白备注视为删除"""
        field = self._notes_field(item_type)
        notes = dict(getattr(self, field))
        if text and text.strip():
            notes[item_id] = text
        else:
            notes.pop(item_id, None)
        setattr(self, field, notes)

    @classmethod
    def from_session(cls, input_values: Dict[str, Any], selected_items: Iterable[str]) -> "SelectionState":
        """从分享会话恢复状态（ID按前缀分桶）"""
        state = cls(input_values=dict(input_values or {}))
        buckets: Dict[ItemType, List[str]] = {item_type: [] for item_type in ItemType}
        for item_id in selected_items or []:
            item_type, _ = classify_item_id(item_id)
            buckets[item_type].append(item_id)
        for item_type, item_ids in buckets.items():
            state.set_selected(item_type, item_ids)
        return state
