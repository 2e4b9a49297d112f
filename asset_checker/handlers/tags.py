"""
标签分类 / 标签值接口（写操作仅管理员）
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from asset_checker.database.connection import get_session
from asset_checker.handlers.auth import require_admin, require_user
from asset_checker.models import ItemType
from asset_checker.services.tagging import CategorySnapshot, TagValueSnapshot
from asset_checker.services.taxonomy_service import (
    TagCategoryService,
    TagValueService,
    category_snapshot,
    value_snapshot,
)

router = APIRouter(prefix="/api/tags", tags=["tags"])


class CategoryCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    item_type: ItemType
    multiple_select: bool = False
    required: bool = False


class CategoryUpdateRequest(BaseModel):
    # 顺序只能通过 /reorder 调整
    model_config = ConfigDict(extra="forbid")

    id: int
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    multiple_select: Optional[bool] = None
    required: Optional[bool] = None


class CategoryReorderRequest(BaseModel):
    item_type: ItemType
    category_ids: List[int]


class ValueCreateRequest(BaseModel):
    category_id: int
    value: str = Field(min_length=1, max_length=50)


class ValueUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    value: Optional[str] = Field(default=None, min_length=1, max_length=50)


class ValueReorderRequest(BaseModel):
    category_id: int
    value_ids: List[int]


@router.get("", response_model=List[CategorySnapshot])
def list_categories(
    item_type: Optional[ItemType] = Query(None),
    session: Session = Depends(get_session),
    _user=Depends(require_user),
):
    return [category_snapshot(category) for category in TagCategoryService.list_categories(session, item_type)]


@router.post("", response_model=CategorySnapshot)
def create_category(body: CategoryCreateRequest, session: Session = Depends(get_session), _admin=Depends(require_admin)):
    category = TagCategoryService.create_category(
        session,
        name=body.name,
        item_type=body.item_type,
        multiple_select=body.multiple_select,
        required=body.required,
    )
    return category_snapshot(category)


@router.put("", response_model=CategorySnapshot)
def update_category(body: CategoryUpdateRequest, session: Session = Depends(get_session), _admin=Depends(require_admin)):
    category = TagCategoryService.update_category(
        session,
        body.id,
        name=body.name,
        multiple_select=body.multiple_select,
        required=body.required,
    )
    return category_snapshot(category)


@router.delete("")
def delete_category(
    id: int = Query(..., description="分类ID"),
    session: Session = Depends(get_session),
    _admin=Depends(require_admin),
) -> dict:
    TagCategoryService.delete_category(session, id)
    return {"success": True}


@router.post("/reorder", response_model=List[CategorySnapshot])
def reorder_categories(body: CategoryReorderRequest, session: Session = Depends(get_session), _admin=Depends(require_admin)):
    categories = TagCategoryService.reorder_categories(session, body.item_type, body.category_ids)
    return [category_snapshot(category) for category in categories]


@router.post("/seed")
def seed_default_categories(session: Session = Depends(get_session), _admin=Depends(require_admin)) -> dict:
    return {"created": TagCategoryService.seed_defaults(session)}


@router.get("/values", response_model=List[TagValueSnapshot])
def list_values(
    category_id: Optional[int] = Query(None),
    session: Session = Depends(get_session),
    _user=Depends(require_user),
):
    return [value_snapshot(value) for value in TagValueService.list_values(session, category_id)]


@router.post("/values", response_model=TagValueSnapshot)
def create_value(body: ValueCreateRequest, session: Session = Depends(get_session), _admin=Depends(require_admin)):
    return value_snapshot(TagValueService.create_value(session, body.category_id, body.value))


@router.put("/values", response_model=TagValueSnapshot)
def update_value(body: ValueUpdateRequest, session: Session = Depends(get_session), _admin=Depends(require_admin)):
    return value_snapshot(TagValueService.update_value(session, body.id, value=body.value))


@router.post("/values/reorder", response_model=List[TagValueSnapshot])
def reorder_values(body: ValueReorderRequest, session: Session = Depends(get_session), _admin=Depends(require_admin)):
    values = TagValueService.reorder_values(session, body.category_id, body.value_ids)
    return [value_snapshot(value) for value in values]


@router.delete("/values")
def delete_value(
    id: int = Query(..., description="标签值ID"),
    session: Session = Depends(get_session),
    _admin=Depends(require_admin),
) -> dict:
    TagValueService.delete_value(session, id)
    return {"success": True}
