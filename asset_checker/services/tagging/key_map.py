"""
标签分类 -> 筛选键 映射

筛选键由分类显示名派生：去掉首尾空白、转小写、连续空白折叠成一个下划线。
显示名规范化后相同的分类会得到同一个筛选键，筛选时被视为同一组。
"""
import re
from typing import Iterable, Dict

from asset_checker.services.tagging.models import CategorySnapshot

_WHITESPACE_RE = re.compile(r"\s+")
KEY_SEPARATOR = "_"


def normalize_filter_key(name: str) -> str:
    """把分类显示名规范化为筛选键"""
    return _WHITESPACE_RE.sub(KEY_SEPARATOR, (name or "").strip().lower())


def build_category_key_map(categories: Iterable[CategorySnapshot]) -> Dict[int, str]:
    """
    构建 分类ID -> 筛选键 的映射

    纯函数，结果只取决于每个分类自身的名称，与输入顺序无关
    """
    return {category.id: normalize_filter_key(category.name) for category in categories}
