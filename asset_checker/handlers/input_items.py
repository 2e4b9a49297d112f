"""
用户输入项接口

GET    /api/input-items                 输入组（含有序输入项）
POST   /api/input-items                 新建输入组（管理员）
PUT    /api/input-items                 修改输入组（管理员）
DELETE /api/input-items?id=             删除输入组及其输入项（管理员）
POST   /api/input-items/items           新建输入项（管理员）
PUT    /api/input-items/items           修改输入项（管理员）
DELETE /api/input-items/items?id=       删除输入项（管理员）
GET    /api/input-items/defaults        各输入项默认值
POST   /api/input-items/validate        校验表单值
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from asset_checker.database.connection import get_session
from asset_checker.handlers.auth import require_admin, require_user
from asset_checker.models import InputItemType
from asset_checker.services.export.models import InputGroupSnapshot, InputItemSnapshot
from asset_checker.services.input_item_service import (
    InputGroupService,
    InputItemService,
    default_input_values,
    validate_input_values,
)

router = APIRouter(prefix="/api/input-items", tags=["input-items"])


class GroupCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class GroupUpdateRequest(BaseModel):
    id: int
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    order_index: Optional[int] = None


class InputItemCreateRequest(BaseModel):
    group_id: int
    name: str = Field(min_length=1, max_length=100)
    type: InputItemType = InputItemType.TEXT
    required: bool = False
    default_value: Optional[str] = None
    options: List[str] = Field(default_factory=list)


class InputItemUpdateRequest(BaseModel):
    id: int
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[InputItemType] = None
    required: Optional[bool] = None
    default_value: Optional[str] = None
    options: Optional[List[str]] = None
    order_index: Optional[int] = None


class ValidateRequest(BaseModel):
    input_values: Dict[str, Any] = Field(default_factory=dict)


def _group_snapshot(group) -> InputGroupSnapshot:
    return InputGroupSnapshot(id=group.id, name=group.name, order_index=group.order_index)


@router.get("", response_model=List[InputGroupSnapshot])
def list_groups(session: Session = Depends(get_session), _user=Depends(require_user)):
    return InputGroupService.list_groups(session)


@router.post("", response_model=InputGroupSnapshot)
def create_group(body: GroupCreateRequest, session: Session = Depends(get_session), _admin=Depends(require_admin)):
    return _group_snapshot(InputGroupService.create_group(session, body.name))


@router.put("", response_model=InputGroupSnapshot)
def update_group(body: GroupUpdateRequest, session: Session = Depends(get_session), _admin=Depends(require_admin)):
    return _group_snapshot(InputGroupService.update_group(session, body.id, name=body.name, order_index=body.order_index))


@router.delete("")
def delete_group(
    id: int = Query(..., description="输入组ID"),
    session: Session = Depends(get_session),
    _admin=Depends(require_admin),
) -> dict:
    InputGroupService.delete_group(session, id)
    return {"success": True}


@router.post("/items", response_model=InputItemSnapshot)
def create_input_item(body: InputItemCreateRequest, session: Session = Depends(get_session), _admin=Depends(require_admin)):
    return InputItemService.create_item(
        session,
        group_id=body.group_id,
        name=body.name,
        item_type=body.type,
        required=body.required,
        default_value=body.default_value,
        options=body.options,
    )


@router.put("/items", response_model=InputItemSnapshot)
def update_input_item(body: InputItemUpdateRequest, session: Session = Depends(get_session), _admin=Depends(require_admin)):
    return InputItemService.update_item(
        session,
        body.id,
        name=body.name,
        item_type=body.type,
        required=body.required,
        default_value=body.default_value,
        options=body.options,
        order_index=body.order_index,
    )


@router.delete("/items")
def delete_input_item(
    id: int = Query(..., description="输入项ID"),
    session: Session = Depends(get_session),
    _admin=Depends(require_admin),
) -> dict:
    InputItemService.delete_item(session, id)
    return {"success": True}


@router.get("/defaults")
def get_default_values(session: Session = Depends(get_session), _user=Depends(require_user)) -> dict:
    return default_input_values(InputGroupService.list_groups(session))


@router.post("/validate")
def validate_values(body: ValidateRequest, session: Session = Depends(get_session), _user=Depends(require_user)) -> dict:
    errors = validate_input_values(InputGroupService.list_groups(session), body.input_values)
    return {"valid": not errors, "errors": errors}
