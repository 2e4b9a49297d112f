"""
物品管理服务层

物品与标签值的关联在同一事务中写入：
    先写物品、flush，再写全部 ItemTag，最后 commit；
    任何一步失败都会回滚，调用方只会看到一个失败，不会留下半成品

标签校验（写入前）：
    - 标签值必须存在，且所属分类的 item_type 与物品类型一致
    - 单选分类最多只能有一个值
"""
from datetime import date, datetime, UTC
from typing import Dict, Iterable, List, Optional

from loguru import logger
from sqlalchemy import delete
from sqlmodel import Session, select, col

from asset_checker.models import Item, ItemTag, ItemType, TagCategory, TagValue, generate_item_id
from asset_checker.services.errors import NotFoundError, TagValidationError
from asset_checker.services.export.models import ExportEntry, ExportItems
from asset_checker.services.selection import SelectionState
from asset_checker.services.tagging import ItemSnapshot, TagRef, sort_items


class ItemService:
    """物品管理服务"""

    @staticmethod
    def _load_tag_refs(session: Session, item_ids: List[str]) -> Dict[str, List[TagRef]]:
        """批量读取物品的标签关联"""
        if not item_ids:
            return {}
        rows = session.exec(
            select(ItemTag.item_id, TagValue.category_id, TagValue.id)
            .join(TagValue, TagValue.id == ItemTag.tag_value_id)
            .where(col(ItemTag.item_id).in_(item_ids))
            .order_by(TagValue.order_index, TagValue.id)
        ).all()

        refs: Dict[str, List[TagRef]] = {}
        for item_id, category_id, value_id in rows:
            refs.setdefault(item_id, []).append(TagRef(category_id=category_id, value_id=value_id))
        return refs

    @staticmethod
    def to_snapshots(session: Session, items: Iterable[Item]) -> List[ItemSnapshot]:
        items = list(items)
        refs = ItemService._load_tag_refs(session, [item.id for item in items])
        return [
            ItemSnapshot(
                id=item.id,
                name=item.name,
                category=item.category,
                image_url=item.image_url,
                implementation_date=item.implementation_date,
                tags=refs.get(item.id, []),
            )
            for item in items
        ]

    @staticmethod
    def list_items(session: Session, item_type: Optional[str] = None) -> List[ItemSnapshot]:
        """列出物品（实装日期倒序、名称升序）"""
        statement = select(Item)
        if item_type:
            statement = statement.where(Item.category == ItemType(item_type).value)
        items = session.exec(statement).all()
        return sort_items(ItemService.to_snapshots(session, items))

    @staticmethod
    def get_item(session: Session, item_id: str) -> Item:
        item = session.get(Item, item_id)
        if not item:
            raise NotFoundError("item", item_id)
        return item

    @staticmethod
    def get_item_snapshot(session: Session, item_id: str) -> ItemSnapshot:
        return ItemService.to_snapshots(session, [ItemService.get_item(session, item_id)])[0]

    @staticmethod
    def validate_tags(session: Session, item_type: str, tag_value_ids: Iterable[int]) -> List[int]:
        """
        校验标签值

        Returns:
            去重后的标签值ID列表（保持原顺序）

        Raises:
            TagValidationError: 标签值不存在、分类类型不符、单选分类多值
        """
        value_ids = list(dict.fromkeys(tag_value_ids))
        if not value_ids:
            return []

        rows = session.exec(
            select(TagValue, TagCategory)
            .join(TagCategory, TagCategory.id == TagValue.category_id)
            .where(col(TagValue.id).in_(value_ids))
        ).all()
        found = {value.id: (value, category) for value, category in rows}

        missing = [value_id for value_id in value_ids if value_id not in found]
        if missing:
            raise TagValidationError(f"标签值不存在: {missing}")

        per_category: Dict[int, List[str]] = {}
        for value_id in value_ids:
            value, category = found[value_id]
            if category.item_type != item_type:
                raise TagValidationError(f"标签分类 {category.name} 不适用于 {item_type}")
            per_category.setdefault(category.id, []).append(value.value)

            if not category.multiple_select and len(per_category[category.id]) > 1:
                raise TagValidationError(
                    f"单选分类 {category.name} 只能选择一个值: {per_category[category.id]}"
                )

        return value_ids

    @staticmethod
    def _replace_tags(session: Session, item_id: str, tag_value_ids: List[int]):
        session.execute(delete(ItemTag).where(ItemTag.item_id == item_id))
        for value_id in tag_value_ids:
            session.add(ItemTag(item_id=item_id, tag_value_id=value_id))

    @staticmethod
    def create_item(
        session: Session,
        name: str,
        item_type: str,
        image_url: Optional[str] = None,
        implementation_date: Optional[date] = None,
        tag_value_ids: Iterable[int] = (),
    ) -> ItemSnapshot:
        """创建物品及其标签（单一事务）"""
        item_type = ItemType(item_type).value
        value_ids = ItemService.validate_tags(session, item_type, tag_value_ids)

        item = Item(
            id=generate_item_id(item_type),
            name=name.strip(),
            category=item_type,
            image_url=image_url or None,
            implementation_date=implementation_date or date.today(),
        )
        try:
            session.add(item)
            session.flush()
            for value_id in value_ids:
                session.add(ItemTag(item_id=item.id, tag_value_id=value_id))
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"创建物品失败 {name}: {e}")
            raise

        logger.info(f"创建物品: {item.id} {item.name} ({len(value_ids)} 个标签)")
        return ItemService.get_item_snapshot(session, item.id)

    @staticmethod
    def update_item(
        session: Session,
        item_id: str,
        name: Optional[str] = None,
        image_url: Optional[str] = None,
        implementation_date: Optional[date] = None,
        tag_value_ids: Optional[Iterable[int]] = None,
    ) -> ItemSnapshot:
        """
        更新物品

        tag_value_ids 为 None 时不修改标签，否则整体替换
        """
        item = ItemService.get_item(session, item_id)
        value_ids = None
        if tag_value_ids is not None:
            value_ids = ItemService.validate_tags(session, item.category, tag_value_ids)

        if name is not None:
            item.name = name.strip()
        if image_url is not None:
            item.image_url = image_url or None
        if implementation_date is not None:
            item.implementation_date = implementation_date
        item.updated_at = datetime.now(UTC)

        try:
            session.add(item)
            if value_ids is not None:
                ItemService._replace_tags(session, item_id, value_ids)
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"更新物品失败 {item_id}: {e}")
            raise

        return ItemService.get_item_snapshot(session, item_id)

    @staticmethod
    def delete_item(session: Session, item_id: str):
        item = ItemService.get_item(session, item_id)
        try:
            session.execute(delete(ItemTag).where(ItemTag.item_id == item_id))
            session.delete(item)
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"删除物品失败 {item_id}: {e}")
            raise
        logger.info(f"删除物品: {item_id}")

    @staticmethod
    def build_export_items(session: Session, state: SelectionState) -> ExportItems:
        """
        按选择状态组装导出数据

        保持选择顺序；数据库中已不存在的ID会被跳过
        """
        all_ids = state.all_selected_ids()
        items = {}
        if all_ids:
            items = {item.id: item for item in session.exec(select(Item).where(col(Item.id).in_(all_ids))).all()}

        missing = [item_id for item_id in all_ids if item_id not in items]
        if missing:
            logger.warning(f"导出时跳过 {len(missing)} 个不存在的物品: {missing[:5]}")

        def entries(item_type: ItemType) -> List[ExportEntry]:
            result = []
            for item_id in state.selected(item_type):
                item = items.get(item_id)
                if item is None:
                    continue
                entry = ExportEntry(
                    id=item.id,
                    name=item.name,
                    image_url=item.image_url,
                    note=state.note(item_type, item_id) or None,
                )
                if item_type == ItemType.WEAPON:
                    entry.count = state.weapon_count(item_id)
                    entry.awakenings = state.awakenings(item_id)
                result.append(entry)
            return result

        return ExportItems(
            characters=entries(ItemType.CHARACTER),
            weapons=entries(ItemType.WEAPON),
            summons=entries(ItemType.SUMMON),
        )
