"""
物品筛选接口

GET  /api/catalog/{item_type}/filters   筛选面板选项
POST /api/catalog/{item_type}/search    按 FilterQuery 过滤，返回物品及其标签数据
"""
from typing import Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from asset_checker.database.connection import get_session
from asset_checker.handlers.auth import require_user
from asset_checker.models import ItemType
from asset_checker.services.item_service import ItemService
from asset_checker.services.tagging import FilterGroup, FilterQuery, ItemSnapshot, filter_items
from asset_checker.services.taxonomy_service import load_taxonomy

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


class CatalogEntry(BaseModel):
    item: ItemSnapshot
    tag_data: Dict[str, List[str]]


class SearchResponse(BaseModel):
    total: int
    matched: int
    items: List[CatalogEntry]


@router.get("/{item_type}/filters", response_model=List[FilterGroup])
def get_filters(item_type: ItemType, session: Session = Depends(get_session), _user=Depends(require_user)):
    return load_taxonomy(session, item_type).filter_groups()


@router.post("/{item_type}/search", response_model=SearchResponse)
def search_items(
    item_type: ItemType,
    query: FilterQuery,
    session: Session = Depends(get_session),
    _user=Depends(require_user),
):
    taxonomy = load_taxonomy(session, item_type)
    items = ItemService.list_items(session, item_type)
    matched = filter_items(items, query, taxonomy)

    return SearchResponse(
        total=len(items),
        matched=len(matched),
        items=[
            CatalogEntry(
                item=item,
                tag_data={key: sorted(values) for key, values in taxonomy.project(item).items()},
            )
            for item in matched
        ],
    )
