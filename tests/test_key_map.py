from asset_checker.services.tagging import CategorySnapshot, build_category_key_map, normalize_filter_key


def _category(category_id, name):
    return CategorySnapshot(id=category_id, name=name, item_type="character")


def test_normalize_filter_key():
    assert normalize_filter_key("Element") == "element"
    assert normalize_filter_key("  Weapon   Type ") == "weapon_type"
    assert normalize_filter_key("得意 \t武器") == "得意_武器"
    assert normalize_filter_key("") == ""


def test_same_normalized_name_shares_key():
    key_map = build_category_key_map([_category(1, "Element"), _category(2, " element ")])
    assert key_map == {1: "element", 2: "element"}


def test_key_map_is_idempotent_and_order_independent():
    categories = [_category(1, "属性"), _category(2, "Weapon Type"), _category(3, "Race")]
    first = build_category_key_map(categories)
    assert build_category_key_map(categories) == first
    assert build_category_key_map(list(reversed(categories))) == first
