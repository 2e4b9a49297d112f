"""
Basic 认证

两套账号：
    - 管理员（BASIC_ADMIN_ID / BASIC_ADMIN_PWD）：可访问全部接口
    - 普通用户（BASIC_USER_ID / BASIC_USER_PWD）：管理接口返回 403

认证通过后写入 auth_user_type Cookie（前端据此切换界面），
development 环境跳过认证并视为管理员
"""
import secrets
from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from loguru import logger

from asset_checker.config.settings import settings

AUTH_USER_TYPE_COOKIE = "auth_user_type"
AUTH_REALM = "Granblue Asset Checker"

security = HTTPBasic(auto_error=False, realm=AUTH_REALM)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class UserType(str, Enum):
    ADMIN = "admin"
    USER = "user"


def _matches(credentials: HTTPBasicCredentials, user_id: str, password: str) -> bool:
    if not user_id or not password:
        return False
    id_ok = secrets.compare_digest(credentials.username.encode("utf-8"), user_id.encode("utf-8"))
    pwd_ok = secrets.compare_digest(credentials.password.encode("utf-8"), password.encode("utf-8"))
    return id_ok and pwd_ok


def resolve_user_type(credentials: Optional[HTTPBasicCredentials]) -> Optional[UserType]:
    """根据 Basic 认证信息判断用户类型，认证失败返回 None"""
    if credentials is None:
        return None
    if _matches(credentials, settings.basic_admin_id, settings.basic_admin_pwd):
        return UserType.ADMIN
    if _matches(credentials, settings.basic_user_id, settings.basic_user_pwd):
        return UserType.USER
    return None


def require_user(
    response: Response,
    credentials: Optional[HTTPBasicCredentials] = Depends(security),
) -> UserType:
    """依赖：任意已认证用户"""
    if settings.is_development:
        return UserType.ADMIN

    user_type = resolve_user_type(credentials)
    if user_type is None:
        if credentials is not None:
            logger.warning(f"Basic 认证失败: {credentials.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication Required",
            headers={"WWW-Authenticate": f'Basic realm="{AUTH_REALM}"'},
        )

    response.set_cookie(AUTH_USER_TYPE_COOKIE, user_type.value, httponly=False, samesite="strict", path="/")
    return user_type


def require_admin(user_type: UserType = Depends(require_user)) -> UserType:
    """依赖：管理员"""
    if user_type != UserType.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access Denied. Administrator privileges required.",
        )
    return user_type


@router.get("/me")
def current_user(user_type: UserType = Depends(require_user)) -> dict:
    return {"user_type": user_type.value}


@router.get("/logout")
def logout():
    """清除 Cookie 并返回 401，让浏览器丢弃缓存的认证信息"""
    response = Response(
        status_code=status.HTTP_401_UNAUTHORIZED,
        headers={"WWW-Authenticate": 'Basic realm="Secure Area", charset="UTF-8"'},
    )
    response.delete_cookie(AUTH_USER_TYPE_COOKIE, path="/")
    return response
