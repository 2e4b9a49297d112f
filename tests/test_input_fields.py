from datetime import date

import pytest

from asset_checker.models import InputItemType
from asset_checker.services.input_fields import (
    CheckboxField,
    NumberField,
    SelectField,
    TextField,
    get_field_variant,
    infer_item_type,
    stringify_value,
)


def test_stringify_value():
    assert stringify_value(True) == "true"
    assert stringify_value(False) == "false"
    assert stringify_value(120) == "120"
    assert stringify_value(120.0) == "120"
    assert stringify_value(1.5) == "1.5"
    assert stringify_value(date(2024, 3, 10)) == "2024-03-10"
    assert stringify_value(None) == ""


def test_number_parse():
    number = NumberField()
    assert number.parse("120") == 120
    assert number.parse("2.5") == 2.5
    assert number.parse("  ") is None
    assert number.parse("1e3") == 1000
    assert number.parse("12345678901234567891") == 12345678901234567891
    with pytest.raises(ValueError):
        number.parse("abc")
    with pytest.raises(ValueError):
        number.parse("inf")


def test_checkbox_parse_and_render():
    checkbox = CheckboxField()
    assert checkbox.parse("true") is True
    assert checkbox.parse("TRUE") is True
    assert checkbox.parse("false") is False
    assert checkbox.parse("") is False
    assert checkbox.render(True) == "✅"
    assert checkbox.render(False) == "❌"


def test_render_blank_value():
    assert TextField().render("") == "-"
    assert NumberField().render(None) == "-"


def test_validate_required_and_options():
    select = SelectField()
    assert select.validate("", required=True) == "必填项"
    assert select.validate("SSR", options=["SSR", "SR"]) is None
    assert select.validate("N", options=["SSR", "SR"]) is not None
    assert NumberField().validate("12a") is not None
    assert get_field_variant("date").validate("2024-02-30") is not None
    assert CheckboxField().validate(None, required=True) is None


def test_unknown_type_falls_back_to_text():
    assert isinstance(get_field_variant("textarea"), TextField)
    assert isinstance(get_field_variant(None), TextField)


def test_infer_item_type():
    assert infer_item_type(True) == InputItemType.CHECKBOX
    assert infer_item_type(3) == InputItemType.NUMBER
    assert infer_item_type("x") == InputItemType.TEXT
