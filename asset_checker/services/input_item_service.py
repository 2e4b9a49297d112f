"""
用户输入项管理服务层

服务类说明：
    - InputGroupService: 输入组的 CRUD，读取时返回带有序输入项的快照
    - InputItemService: 输入项的 CRUD

新建时 order_index 取同组最大值 + 1
"""
from datetime import datetime, UTC
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger
from sqlalchemy import delete
from sqlmodel import Session, select, func

from asset_checker.models import InputGroup, InputItem, InputItemType
from asset_checker.services.errors import NotFoundError
from asset_checker.services.export.models import InputGroupSnapshot, InputItemSnapshot
from asset_checker.services.input_fields import get_field_variant


def item_snapshot(input_item: InputItem) -> InputItemSnapshot:
    return InputItemSnapshot(
        id=input_item.id,
        name=input_item.name,
        type=input_item.type,
        required=input_item.required,
        default_value=input_item.default_value,
        options=list(input_item.options or []),
        order_index=input_item.order_index,
    )


class InputGroupService:
    """输入组管理服务"""

    @staticmethod
    def list_groups(session: Session) -> List[InputGroupSnapshot]:
        """列出全部输入组（组和输入项都按 order_index 排序）"""
        groups = session.exec(select(InputGroup).order_by(InputGroup.order_index, InputGroup.id)).all()
        items = session.exec(select(InputItem).order_by(InputItem.order_index, InputItem.id)).all()

        items_by_group: Dict[int, List[InputItemSnapshot]] = {}
        for input_item in items:
            items_by_group.setdefault(input_item.group_id, []).append(item_snapshot(input_item))

        return [
            InputGroupSnapshot(
                id=group.id,
                name=group.name,
                order_index=group.order_index,
                items=items_by_group.get(group.id, []),
            )
            for group in groups
        ]

    @staticmethod
    def get_group(session: Session, group_id: int) -> InputGroup:
        group = session.get(InputGroup, group_id)
        if not group:
            raise NotFoundError("input group", group_id)
        return group

    @staticmethod
    def create_group(session: Session, name: str) -> InputGroup:
        max_order = session.exec(select(func.max(InputGroup.order_index))).one()
        group = InputGroup(name=name.strip(), order_index=(max_order or 0) + 1)
        session.add(group)
        session.commit()
        session.refresh(group)
        logger.info(f"创建输入组: {group.name}")
        return group

    @staticmethod
    def update_group(
        session: Session,
        group_id: int,
        name: Optional[str] = None,
        order_index: Optional[int] = None,
    ) -> InputGroup:
        group = InputGroupService.get_group(session, group_id)
        if name is not None:
            group.name = name.strip()
        if order_index is not None:
            group.order_index = order_index
        group.updated_at = datetime.now(UTC)
        session.add(group)
        session.commit()
        session.refresh(group)
        return group

    @staticmethod
    def delete_group(session: Session, group_id: int):
        """删除输入组及其全部输入项"""
        group = InputGroupService.get_group(session, group_id)
        try:
            session.execute(delete(InputItem).where(InputItem.group_id == group_id))
            session.delete(group)
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"删除输入组失败 {group_id}: {e}")
            raise


class InputItemService:
    """输入项管理服务"""

    @staticmethod
    def get_item(session: Session, item_id: int) -> InputItem:
        input_item = session.get(InputItem, item_id)
        if not input_item:
            raise NotFoundError("input item", item_id)
        return input_item

    @staticmethod
    def create_item(
        session: Session,
        group_id: int,
        name: str,
        item_type: str = InputItemType.TEXT.value,
        required: bool = False,
        default_value: Optional[str] = None,
        options: Optional[List[str]] = None,
    ) -> InputItemSnapshot:
        InputGroupService.get_group(session, group_id)

        max_order = session.exec(
            select(func.max(InputItem.order_index)).where(InputItem.group_id == group_id)
        ).one()
        input_item = InputItem(
            group_id=group_id,
            name=name.strip(),
            type=InputItemType(item_type).value,
            required=required,
            default_value=default_value,
            options=list(options or []),
            order_index=(max_order or 0) + 1,
        )
        session.add(input_item)
        session.commit()
        session.refresh(input_item)
        logger.info(f"创建输入项: {input_item.name} ({input_item.type})")
        return item_snapshot(input_item)

    @staticmethod
    def update_item(
        session: Session,
        item_id: int,
        name: Optional[str] = None,
        item_type: Optional[str] = None,
        required: Optional[bool] = None,
        default_value: Optional[str] = None,
        options: Optional[List[str]] = None,
        order_index: Optional[int] = None,
    ) -> InputItemSnapshot:
        input_item = InputItemService.get_item(session, item_id)
        if name is not None:
            input_item.name = name.strip()
        if item_type is not None:
            input_item.type = InputItemType(item_type).value
        if required is not None:
            input_item.required = required
        if default_value is not None:
            input_item.default_value = default_value or None
        if options is not None:
            input_item.options = list(options)
        if order_index is not None:
            input_item.order_index = order_index
        input_item.updated_at = datetime.now(UTC)

        session.add(input_item)
        session.commit()
        session.refresh(input_item)
        return item_snapshot(input_item)

    @staticmethod
    def delete_item(session: Session, item_id: int):
        input_item = InputItemService.get_item(session, item_id)
        session.delete(input_item)
        session.commit()


def default_input_values(groups: Iterable[InputGroupSnapshot]) -> Dict[str, Any]:
    """各输入项的默认值（按输入类型解析），没有默认值的项不出现"""
    values: Dict[str, Any] = {}
    for group in groups:
        for input_item in group.items:
            if input_item.default_value is None:
                continue
            try:
                values[input_item.key] = get_field_variant(input_item.type).parse(input_item.default_value)
            except ValueError:
                logger.warning(f"输入项 {input_item.name} 的默认值无法解析: {input_item.default_value!r}")
    return values


def validate_input_values(groups: Iterable[InputGroupSnapshot], input_values: Dict[str, Any]) -> Dict[str, str]:
    """
    校验表单值

    Returns:
        {输入项键: 错误信息}，为空表示全部通过
    """
    errors: Dict[str, str] = {}
    for group in groups:
        for input_item in group.items:
            variant = get_field_variant(input_item.type)
            error = variant.validate(input_values.get(input_item.key), input_item.required, input_item.options)
            if error:
                errors[input_item.key] = error
    return errors
