"""
分享会话接口

POST   /api/sessions          创建（每次分享都是新会话）
GET    /api/sessions?id=      读取，不存在时 404
DELETE /api/sessions?id=      管理员
"""
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from asset_checker.database.connection import get_session
from asset_checker.handlers.auth import require_admin, require_user
from asset_checker.services.session_service import SessionData, SessionService, build_share_url

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


class SessionCreateRequest(BaseModel):
    input_values: Dict[str, Any] = Field(default_factory=dict)
    selected_items: List[str] = Field(default_factory=list)


class SessionCreateResponse(BaseModel):
    id: str
    share_url: str


@router.post("", response_model=SessionCreateResponse)
def create_session(body: SessionCreateRequest, session: Session = Depends(get_session), _user=Depends(require_user)):
    session_id = SessionService.create_session(session, body.input_values, body.selected_items)
    return SessionCreateResponse(id=session_id, share_url=build_share_url(session_id))


@router.get("", response_model=SessionData)
def load_session(
    id: str = Query(..., description="会话ID"),
    session: Session = Depends(get_session),
    _user=Depends(require_user),
):
    return SessionService.load_session(session, id)


@router.delete("")
def delete_session(
    id: str = Query(..., description="会话ID"),
    session: Session = Depends(get_session),
    _admin=Depends(require_admin),
) -> dict:
    SessionService.delete_session(session, id)
    return {"success": True}
