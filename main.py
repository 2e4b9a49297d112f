from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from loguru import logger
from sqlmodel import Session

from asset_checker.config.settings import settings
from asset_checker.database.connection import create_db_and_tables, engine
from asset_checker.handlers import auth, bulk_upload, catalog, export, input_items, items, sessions, tags, upload
from asset_checker.handlers.errors import register_exception_handlers
from asset_checker.services.taxonomy_service import TagCategoryService

ROUTERS = (
    auth.router,
    items.router,
    tags.router,
    sessions.router,
    input_items.router,
    upload.router,
    bulk_upload.router,
    catalog.router,
    export.router,
)


def create_app() -> FastAPI:
    """创建 FastAPI 应用并注册路由"""
    app = FastAPI(title="Granblue Asset Checker")

    for router in ROUTERS:
        app.include_router(router)
    register_exception_handlers(app)

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(settings.upload_url_prefix, StaticFiles(directory=upload_dir), name="uploads")

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


def main():
    """初始化数据库并启动 Web 服务"""
    logger.info("正在初始化数据库...")
    create_db_and_tables()
    with Session(engine) as session:
        TagCategoryService.seed_defaults(session)
    logger.info("数据库初始化完成!")

    if settings.is_development:
        logger.warning("development 环境：已跳过 Basic 认证")
    elif not settings.is_auth_configured:
        logger.warning("未配置 BASIC_ADMIN_ID / BASIC_ADMIN_PWD，管理接口将无法访问")

    logger.info(f"服务启动: http://{settings.host}:{settings.port}")
    uvicorn.run(create_app(), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
