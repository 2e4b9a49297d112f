"""
标签体系管理服务层

服务类说明：
    - TagCategoryService: 标签分类的 CRUD、排序、默认分类初始化
    - TagValueService: 标签值的 CRUD

排序规则：
    新建分类 / 标签值的 order_index 为同组最大值 + 1，
    reorder_categories() 按给定顺序重写为 1..n

级联删除：
    删除分类 -> 删除引用其标签值的物品标签 -> 删除标签值 -> 删除分类，
    在同一个事务中完成，任何一步失败都整体回滚
"""
from datetime import datetime, UTC
from typing import Dict, List, Optional

from loguru import logger
from sqlalchemy import delete
from sqlmodel import Session, select, func, col

from asset_checker.models import ItemTag, ItemType, TagCategory, TagValue
from asset_checker.services.errors import ConflictError, NotFoundError
from asset_checker.services.tagging import CategorySnapshot, TagValueSnapshot, Taxonomy

# 初次部署时写入的默认分类
DEFAULT_TAG_CATEGORIES: Dict[ItemType, List[dict]] = {
    ItemType.CHARACTER: [
        {"name": "属性", "multiple_select": False, "required": True,
         "values": ["火", "水", "土", "風", "光", "闇"]},
        {"name": "得意武器", "multiple_select": True, "required": False,
         "values": ["剣", "槍", "斧", "弓", "杖", "短剣", "格闘", "銃", "刀", "楽器"]},
        {"name": "性別", "multiple_select": False, "required": False,
         "values": ["♂", "♀", "不明"]},
        {"name": "種族", "multiple_select": False, "required": False,
         "values": ["ヒューマン", "ドラフ", "エルーン", "ハーヴィン", "その他", "星晶獣"]},
        {"name": "タイプ", "multiple_select": False, "required": True,
         "values": ["攻撃", "防御", "回復", "バランス", "特殊"]},
        {"name": "解放武器", "multiple_select": False, "required": False,
         "values": ["剣", "槍", "斧", "弓", "杖", "短剣", "格闘", "銃", "刀", "楽器"]},
        {"name": "入手方法", "multiple_select": False, "required": False,
         "values": ["恒常", "リミテッド", "季節限定", "コラボ", "その他"]},
    ],
    ItemType.WEAPON: [
        {"name": "属性", "multiple_select": False, "required": True,
         "values": ["火", "水", "土", "風", "光", "闇"]},
        {"name": "武器種", "multiple_select": False, "required": True,
         "values": ["剣", "槍", "斧", "弓", "杖", "短剣", "格闘", "銃", "刀", "楽器"]},
    ],
    ItemType.SUMMON: [
        {"name": "属性", "multiple_select": False, "required": True,
         "values": ["火", "水", "土", "風", "光", "闇"]},
    ],
}


def category_snapshot(category: TagCategory) -> CategorySnapshot:
    return CategorySnapshot(
        id=category.id,
        name=category.name,
        item_type=category.item_type,
        multiple_select=category.multiple_select,
        required=category.required,
        order_index=category.order_index,
    )


def value_snapshot(value: TagValue) -> TagValueSnapshot:
    return TagValueSnapshot(
        id=value.id,
        category_id=value.category_id,
        value=value.value,
        order_index=value.order_index,
    )


class TagCategoryService:
    """标签分类管理服务"""

    @staticmethod
    def list_categories(session: Session, item_type: Optional[str] = None) -> List[TagCategory]:
        """列出分类（按 order_index 排序）"""
        statement = select(TagCategory)
        if item_type:
            statement = statement.where(TagCategory.item_type == ItemType(item_type).value)
        statement = statement.order_by(TagCategory.order_index, TagCategory.id)
        return list(session.exec(statement).all())

    @staticmethod
    def get_category(session: Session, category_id: int) -> TagCategory:
        category = session.get(TagCategory, category_id)
        if not category:
            raise NotFoundError("tag category", category_id)
        return category

    @staticmethod
    def create_category(
        session: Session,
        name: str,
        item_type: str,
        multiple_select: bool = False,
        required: bool = False,
    ) -> TagCategory:
        """创建分类，排在同类型最后"""
        item_type = ItemType(item_type).value
        max_order = session.exec(
            select(func.max(TagCategory.order_index)).where(TagCategory.item_type == item_type)
        ).one()

        category = TagCategory(
            name=name.strip(),
            item_type=item_type,
            multiple_select=multiple_select,
            required=required,
            order_index=(max_order or 0) + 1,
        )
        session.add(category)
        session.commit()
        session.refresh(category)

        logger.info(f"创建标签分类: {category.name} ({item_type}, order={category.order_index})")
        return category

    @staticmethod
    def update_category(
        session: Session,
        category_id: int,
        name: Optional[str] = None,
        multiple_select: Optional[bool] = None,
        required: Optional[bool] = None,
    ) -> TagCategory:
        """修改分类属性（顺序只能通过 reorder_categories 调整）"""
        category = TagCategoryService.get_category(session, category_id)

        if name is not None:
            category.name = name.strip()
        if multiple_select is not None:
            category.multiple_select = multiple_select
        if required is not None:
            category.required = required
        category.updated_at = datetime.now(UTC)

        session.add(category)
        session.commit()
        session.refresh(category)
        return category

    @staticmethod
    def delete_category(session: Session, category_id: int):
        """删除分类（级联删除标签值和物品标签）"""
        category = TagCategoryService.get_category(session, category_id)
        category_name = category.name
        value_ids = list(session.exec(select(TagValue.id).where(TagValue.category_id == category_id)).all())

        try:
            if value_ids:
                session.execute(delete(ItemTag).where(col(ItemTag.tag_value_id).in_(value_ids)))
                session.execute(delete(TagValue).where(TagValue.category_id == category_id))
            session.delete(category)
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"删除标签分类失败 {category_id}: {e}")
            raise

        logger.info(f"删除标签分类: {category_name} (级联删除 {len(value_ids)} 个标签值)")

    @staticmethod
    def reorder_categories(session: Session, item_type: str, category_ids: List[int]) -> List[TagCategory]:
        """
        按给定顺序重排分类

        列表外的分类保持原相对顺序排在后面，最终序号为 1..n
        """
        categories = TagCategoryService.list_categories(session, item_type)
        by_id = {category.id: category for category in categories}

        unknown = [category_id for category_id in category_ids if category_id not in by_id]
        if unknown:
            raise NotFoundError("tag category", unknown[0])

        ordered_ids = list(dict.fromkeys(category_ids))
        ordered_ids += [category.id for category in categories if category.id not in ordered_ids]

        now = datetime.now(UTC)
        for index, category_id in enumerate(ordered_ids, start=1):
            category = by_id[category_id]
            if category.order_index != index:
                category.order_index = index
                category.updated_at = now
                session.add(category)
        session.commit()

        return TagCategoryService.list_categories(session, item_type)

    @staticmethod
    def seed_defaults(session: Session) -> int:
        """
        写入默认分类

        只有当某个物品类型还没有任何分类时才写入，返回新建的分类数
        """
        created = 0
        for item_type, definitions in DEFAULT_TAG_CATEGORIES.items():
            if TagCategoryService.list_categories(session, item_type):
                continue
            for definition in definitions:
                category = TagCategoryService.create_category(
                    session,
                    name=definition["name"],
                    item_type=item_type,
                    multiple_select=definition["multiple_select"],
                    required=definition["required"],
                )
                for value in definition["values"]:
                    TagValueService.create_value(session, category.id, value)
                created += 1

        if created:
            logger.info(f"已写入 {created} 个默认标签分类")
        return created


class TagValueService:
    """标签值管理服务"""

    @staticmethod
    def list_values(session: Session, category_id: Optional[int] = None) -> List[TagValue]:
        statement = select(TagValue)
        if category_id is not None:
            statement = statement.where(TagValue.category_id == category_id)
        statement = statement.order_by(TagValue.category_id, TagValue.order_index, TagValue.id)
        return list(session.exec(statement).all())

    @staticmethod
    def list_values_for_item_type(session: Session, item_type: str) -> List[TagValue]:
        statement = (
            select(TagValue)
            .join(TagCategory, TagCategory.id == TagValue.category_id)
            .where(TagCategory.item_type == ItemType(item_type).value)
            .order_by(TagValue.order_index, TagValue.id)
        )
        return list(session.exec(statement).all())

    @staticmethod
    def get_value(session: Session, value_id: int) -> TagValue:
        value = session.get(TagValue, value_id)
        if not value:
            raise NotFoundError("tag value", value_id)
        return value

    @staticmethod
    def find_value(session: Session, category_id: int, value: str) -> Optional[TagValue]:
        return session.exec(
            select(TagValue).where(TagValue.category_id == category_id, TagValue.value == value.strip())
        ).first()

    @staticmethod
    def create_value(session: Session, category_id: int, value: str) -> TagValue:
        """创建标签值，同一分类下重复时抛出 ConflictError"""
        TagCategoryService.get_category(session, category_id)

        text = value.strip()
        if TagValueService.find_value(session, category_id, text):
            raise ConflictError(f"标签值已存在: {text}")

        max_order = session.exec(
            select(func.max(TagValue.order_index)).where(TagValue.category_id == category_id)
        ).one()

        tag_value = TagValue(category_id=category_id, value=text, order_index=(max_order or 0) + 1)
        session.add(tag_value)
        session.commit()
        session.refresh(tag_value)
        return tag_value

    @staticmethod
    def get_or_create_value(session: Session, category_id: int, value: str) -> TagValue:
        existing = TagValueService.find_value(session, category_id, value)
        if existing:
            return existing
        return TagValueService.create_value(session, category_id, value)

    @staticmethod
    def update_value(
        session: Session,
        value_id: int,
        value: Optional[str] = None,
    ) -> TagValue:
        tag_value = TagValueService.get_value(session, value_id)

        if value is not None:
            text = value.strip()
            existing = TagValueService.find_value(session, tag_value.category_id, text)
            if existing and existing.id != tag_value.id:
                raise ConflictError(f"标签值已存在: {text}")
            tag_value.value = text
        tag_value.updated_at = datetime.now(UTC)

        session.add(tag_value)
        session.commit()
        session.refresh(tag_value)
        return tag_value

    @staticmethod
    def reorder_values(session: Session, category_id: int, value_ids: List[int]) -> List[TagValue]:
        """按给定顺序重排分类下的标签值，规则同 reorder_categories"""
        TagCategoryService.get_category(session, category_id)
        values = TagValueService.list_values(session, category_id)
        by_id = {tag_value.id: tag_value for tag_value in values}

        unknown = [value_id for value_id in value_ids if value_id not in by_id]
        if unknown:
            raise NotFoundError("tag value", unknown[0])

        ordered_ids = list(dict.fromkeys(value_ids))
        ordered_ids += [tag_value.id for tag_value in values if tag_value.id not in ordered_ids]

        now = datetime.now(UTC)
        for index, value_id in enumerate(ordered_ids, start=1):
            tag_value = by_id[value_id]
            if tag_value.order_index != index:
                tag_value.order_index = index
                tag_value.updated_at = now
                session.add(tag_value)
        session.commit()

        return TagValueService.list_values(session, category_id)

    @staticmethod
    def delete_value(session: Session, value_id: int):
        """删除标签值（同时删除引用它的物品标签）"""
        tag_value = TagValueService.get_value(session, value_id)
        try:
            session.execute(delete(ItemTag).where(ItemTag.tag_value_id == value_id))
            session.delete(tag_value)
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"删除标签值失败 {value_id}: {e}")
            raise


def load_taxonomy(session: Session, item_type: str) -> Taxonomy:
    """读取某个物品类型的标签体系快照"""
    categories = TagCategoryService.list_categories(session, item_type)
    values = TagValueService.list_values_for_item_type(session, item_type)
    return Taxonomy(
        [category_snapshot(category) for category in categories],
        [value_snapshot(value) for value in values],
    )
