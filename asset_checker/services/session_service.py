"""
分享会话服务

会话只写一次：每次分享都新建一条记录，历史链接各自独立、内容不变
"""
from typing import Any, Dict, Iterable, List

from loguru import logger
from pydantic import BaseModel, Field
from sqlmodel import Session

from asset_checker.config.settings import settings
from asset_checker.models import UserSession
from asset_checker.services.errors import NotFoundError
from asset_checker.services.selection import SelectionState


class SessionData(BaseModel):
    """会话内容"""
    input_values: Dict[str, Any] = Field(default_factory=dict)
    selected_items: List[str] = Field(default_factory=list)

    def to_state(self) -> SelectionState:
        return SelectionState.from_session(self.input_values, self.selected_items)


class SessionService:
    """分享会话服务"""

    @staticmethod
    def create_session(
        session: Session,
        input_values: Dict[str, Any],
        selected_item_ids: Iterable[str],
    ) -> str:
        """原样保存输入值和已选物品，返回新会话ID"""
        user_session = UserSession(
            input_values=dict(input_values or {}),
            selected_items=list(selected_item_ids or []),
        )
        session.add(user_session)
        session.commit()
        session.refresh(user_session)

        logger.info(f"创建分享会话: {user_session.id} ({len(user_session.selected_items)} 个物品)")
        return user_session.id

    @staticmethod
    def load_session(session: Session, session_id: str) -> SessionData:
        user_session = session.get(UserSession, session_id) if session_id else None
        if not user_session:
            raise NotFoundError("session", session_id)
        return SessionData(
            input_values=user_session.input_values or {},
            selected_items=user_session.selected_items or [],
        )

    @staticmethod
    def delete_session(session: Session, session_id: str):
        user_session = session.get(UserSession, session_id) if session_id else None
        if not user_session:
            raise NotFoundError("session", session_id)
        session.delete(user_session)
        session.commit()
        logger.info(f"删除分享会话: {session_id}")


def build_share_url(session_id: str, base_url: str = "") -> str:
    """分享链接：<public_base_url>?session=<id>"""
    base = base_url or settings.share_base_url
    return f"{base}?session={session_id}"
