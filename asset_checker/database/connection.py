from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.pool import StaticPool
from asset_checker.config.settings import settings


def build_engine(database_url: str):
    """根据连接串创建引擎（sqlite 内存库需要共享单连接）"""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
    )


engine = build_engine(settings.database_url)


def create_db_and_tables():
    """创建数据库表并执行迁移"""
    from loguru import logger

    # 导入所有模型以确保SQLModel能创建表
    from asset_checker.models.tag import TagCategory, TagValue
    from asset_checker.models.item import Item, ItemTag
    from asset_checker.models.user_session import UserSession
    from asset_checker.models.input_item import InputGroup, InputItem

    logger.info("开始创建数据库表...")

    SQLModel.metadata.create_all(engine)

    logger.info("检查数据库迁移...")
    try:
        from asset_checker.database.migrations import run_migrations

        run_migrations()
    except Exception as e:
        logger.error(f"数据库迁移失败: {e}")
        raise


def get_session():
    """获取数据库会话"""
    with Session(engine) as session:
        yield session
