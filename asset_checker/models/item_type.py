"""
物品类型

角色 / 武器 / 召唤石 三类，标签分类和物品都按此划分
"""
from enum import Enum


class ItemType(str, Enum):
    """物品类型"""
    CHARACTER = "character"  # 角色
    WEAPON = "weapon"  # 武器
    SUMMON = "summon"  # 召唤石
