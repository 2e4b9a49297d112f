"""
输入项类型处理

每种输入类型对应一个 FieldVariant，负责：
    - parse: 把字符串（表单 / CSV）解析成值
    - render: 把值渲染成展示文本（导出图片 / PDF 使用）
    - validate: 校验值，返回错误信息（None 表示通过）
    - stringify: 把值写成 CSV 中的字面字符串（true/false、整数不带 .0）
"""
import math
from datetime import date
from typing import Any, Dict, Optional, Sequence

from asset_checker.models.input_item import InputItemType

EMPTY_DISPLAY = "-"


def stringify_value(value: Any) -> str:
    """把值转成字面字符串，布尔值写成 true/false，整数值的浮点数去掉 .0"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


class FieldVariant:
    """输入类型基类（默认按文本处理）"""

    type: InputItemType = InputItemType.TEXT

    def parse(self, raw: Optional[str]) -> Any:
        return "" if raw is None else raw

    def render(self, value: Any) -> str:
        if is_blank(value):
            return EMPTY_DISPLAY
        return stringify_value(value)

    def stringify(self, value: Any) -> str:
        return stringify_value(value)

    def validate(self, value: Any, required: bool = False, options: Sequence[str] = ()) -> Optional[str]:
        if required and is_blank(value):
            return "必填项"
        return None


class TextField(FieldVariant):
    type = InputItemType.TEXT


class NumberField(FieldVariant):
    type = InputItemType.NUMBER

    def parse(self, raw: Optional[str]) -> Any:
        if is_blank(raw):
            return None
        text = raw.strip()
        # 先按整数解析，避免大整数经过 float 丢失精度
        try:
            return int(text)
        except ValueError:
            number = float(text)
        if not math.isfinite(number):
            raise ValueError(f"not a finite number: {raw!r}")
        return int(number) if number.is_integer() else number

    def validate(self, value: Any, required: bool = False, options: Sequence[str] = ()) -> Optional[str]:
        error = super().validate(value, required, options)
        if error or is_blank(value):
            return error
        if isinstance(value, bool):
            return "请输入数字"
        try:
            float(value)
        except (TypeError, ValueError):
            return "请输入数字"
        return None


class CheckboxField(FieldVariant):
    type = InputItemType.CHECKBOX

    def parse(self, raw: Optional[str]) -> Any:
        return (raw or "").strip().lower() == "true"

    def render(self, value: Any) -> str:
        return "✅" if value else "❌"

    def validate(self, value: Any, required: bool = False, options: Sequence[str] = ()) -> Optional[str]:
        # 复选框始终有值（未勾选即 false）
        return None


class ChoiceField(FieldVariant):
    """radio / select 共用：值必须是可选项之一（可选项为空时不限制）"""

    def validate(self, value: Any, required: bool = False, options: Sequence[str] = ()) -> Optional[str]:
        error = super().validate(value, required, options)
        if error or is_blank(value):
            return error
        if options and stringify_value(value) not in options:
            return "请选择有效的选项"
        return None


class RadioField(ChoiceField):
    type = InputItemType.RADIO


class SelectField(ChoiceField):
    type = InputItemType.SELECT


class DateField(FieldVariant):
    type = InputItemType.DATE

    def validate(self, value: Any, required: bool = False, options: Sequence[str] = ()) -> Optional[str]:
        error = super().validate(value, required, options)
        if error or is_blank(value) or isinstance(value, date):
            return error
        try:
            date.fromisoformat(str(value))
        except ValueError:
            return "请输入正确的日期"
        return None


FIELD_VARIANTS: Dict[InputItemType, FieldVariant] = {
    variant.type: variant
    for variant in (TextField(), NumberField(), CheckboxField(), RadioField(), SelectField(), DateField())
}


def get_field_variant(item_type: Optional[str]) -> FieldVariant:
    """按类型字符串取处理器，未知类型按文本处理"""
    try:
        return FIELD_VARIANTS[InputItemType(item_type)]
    except ValueError:
        return FIELD_VARIANTS[InputItemType.TEXT]


def infer_item_type(value: Any) -> InputItemType:
    """根据 Python 值推断输入类型（用于没有输入项定义的值）"""
    if isinstance(value, bool):
        return InputItemType.CHECKBOX
    if isinstance(value, (int, float)):
        return InputItemType.NUMBER
    if isinstance(value, date):
        return InputItemType.DATE
    return InputItemType.TEXT
