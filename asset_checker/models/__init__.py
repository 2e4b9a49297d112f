from asset_checker.models.item_type import ItemType
from asset_checker.models.tag import TagCategory, TagValue
from asset_checker.models.item import Item, ItemTag, generate_item_id
from asset_checker.models.user_session import UserSession
from asset_checker.models.input_item import InputGroup, InputItem, InputItemType

__all__ = [
    "ItemType",
    "TagCategory",
    "TagValue",
    "Item",
    "ItemTag",
    "generate_item_id",
    "UserSession",
    "InputGroup",
    "InputItem",
    "InputItemType",
]
