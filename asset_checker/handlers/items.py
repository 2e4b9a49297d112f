"""
物品接口

GET    /api/items?category=        列表（含标签关联）
GET    /api/items/{item_id}
POST   /api/items                  管理员
PUT    /api/items                  管理员
DELETE /api/items?id=              管理员
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from asset_checker.database.connection import get_session
from asset_checker.handlers.auth import require_admin, require_user
from asset_checker.models import ItemType
from asset_checker.services.item_service import ItemService
from asset_checker.services.tagging import ItemSnapshot

router = APIRouter(prefix="/api/items", tags=["items"])


class ItemCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    category: ItemType
    image_url: Optional[str] = None
    implementation_date: Optional[date] = None
    tag_value_ids: List[int] = Field(default_factory=list)


class ItemUpdateRequest(BaseModel):
    id: str
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    image_url: Optional[str] = None
    implementation_date: Optional[date] = None
    tag_value_ids: Optional[List[int]] = None


@router.get("", response_model=List[ItemSnapshot])
def list_items(
    category: Optional[ItemType] = Query(None),
    session: Session = Depends(get_session),
    _user=Depends(require_user),
):
    return ItemService.list_items(session, category)


@router.get("/{item_id}", response_model=ItemSnapshot)
def get_item(item_id: str, session: Session = Depends(get_session), _user=Depends(require_user)):
    return ItemService.get_item_snapshot(session, item_id)


@router.post("", response_model=ItemSnapshot)
def create_item(body: ItemCreateRequest, session: Session = Depends(get_session), _admin=Depends(require_admin)):
    return ItemService.create_item(
        session,
        name=body.name,
        item_type=body.category,
        image_url=body.image_url,
        implementation_date=body.implementation_date,
        tag_value_ids=body.tag_value_ids,
    )


@router.put("", response_model=ItemSnapshot)
def update_item(body: ItemUpdateRequest, session: Session = Depends(get_session), _admin=Depends(require_admin)):
    return ItemService.update_item(
        session,
        body.id,
        name=body.name,
        image_url=body.image_url,
        implementation_date=body.implementation_date,
        tag_value_ids=body.tag_value_ids,
    )


@router.delete("")
def delete_item(
    id: str = Query(..., description="物品ID"),
    session: Session = Depends(get_session),
    _admin=Depends(require_admin),
) -> dict:
    ItemService.delete_item(session, id)
    return {"success": True}
