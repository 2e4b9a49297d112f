from asset_checker.services.tagging.models import (
    CategorySnapshot,
    TagValueSnapshot,
    TagValueRef,
    TagRef,
    ItemSnapshot,
    FilterQuery,
    FilterGroup,
)
from asset_checker.services.tagging.key_map import build_category_key_map, normalize_filter_key
from asset_checker.services.tagging.projection import build_tag_value_index, project_item_tags
from asset_checker.services.tagging.taxonomy import Taxonomy
from asset_checker.services.tagging.filtering import filter_items, sort_items

__all__ = [
    "CategorySnapshot",
    "TagValueSnapshot",
    "TagValueRef",
    "TagRef",
    "ItemSnapshot",
    "FilterQuery",
    "FilterGroup",
    "build_category_key_map",
    "normalize_filter_key",
    "build_tag_value_index",
    "project_item_tags",
    "Taxonomy",
    "filter_items",
    "sort_items",
]
