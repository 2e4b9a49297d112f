"""
数据库迁移系统

自动检测并执行数据库结构变更
新库由 create_all 直接建出最新结构，迁移只针对已存在的旧库
"""
from loguru import logger
from sqlalchemy import text, inspect
from sqlmodel import Session


class Migration:
    """单个迁移定义"""

    def __init__(self, version: int, description: str):
        self.version = version
        self.description = description

    def check(self, session: Session) -> bool:
        """检查是否需要执行迁移（返回True表示需要执行）"""
        raise NotImplementedError

    def execute(self, session: Session):
        """执行迁移"""
        raise NotImplementedError

    def rollback(self, session: Session):
        """回滚迁移（可选）"""
        raise NotImplementedError

    @staticmethod
    def _column_names(session: Session, table: str) -> list[str] | None:
        """读取表的字段名，表不存在时返回 None"""
        inspector = inspect(session.get_bind())
        if table not in inspector.get_table_names():
            return None
        return [col['name'] for col in inspector.get_columns(table)]


class Migration001_AddItemImplementationDate(Migration):
    """
    迁移001: 为 items 表添加 implementation_date 字段

    变更内容:
    - 添加 implementation_date DATE 字段，已有数据默认填充当前日期
    - 设置 NOT NULL
    - 创建 idx_items_implementation_date 索引（列表按实装日期排序）
    """

    def __init__(self):
        super().__init__(
            version=1,
            description="Add implementation_date column to items table"
        )

    def check(self, session: Session) -> bool:
        """检查 items 表是否缺少 implementation_date 字段"""
        try:
            column_names = self._column_names(session, 'items')
            if column_names is None:
                logger.info("items 表不存在，跳过迁移")
                return False

            if 'implementation_date' not in column_names:
                logger.warning("检测到旧版本数据库结构: items 表缺少 implementation_date 字段")
                return True
            logger.info("items 表已包含 implementation_date 字段")
            return False

        except Exception as e:
            logger.error(f"检查迁移状态失败: {e}")
            return False

    def execute(self, session: Session):
        """执行迁移"""
        logger.info("=" * 80)
        logger.info(f"开始执行迁移 #{self.version}: {self.description}")
        logger.info("=" * 80)

        try:
            logger.info("Step 1/3: 添加 implementation_date 字段...")
            session.exec(text("""
                ALTER TABLE items
                ADD COLUMN IF NOT EXISTS implementation_date DATE DEFAULT CURRENT_DATE;
            """))
            session.commit()
            logger.info("✅ implementation_date 字段已添加")

            logger.info("Step 2/3: 设置 NOT NULL...")
            session.exec(text("""
                ALTER TABLE items
                ALTER COLUMN implementation_date SET NOT NULL;
            """))
            session.commit()
            logger.info("✅ NOT NULL 约束已设置")

            logger.info("Step 3/3: 创建索引...")
            session.exec(text("""
                CREATE INDEX IF NOT EXISTS idx_items_implementation_date
                ON items(implementation_date);
            """))
            session.commit()
            logger.info("✅ 索引已创建")

            logger.info("验证迁移结果...")
            if 'implementation_date' in (self._column_names(session, 'items') or []):
                logger.info("✅ 验证通过")
            else:
                raise Exception("验证失败: implementation_date 字段不存在")

            logger.info("=" * 80)
            logger.success(f"🎉 迁移 #{self.version} 执行成功！")
            logger.info("=" * 80)

        except Exception as e:
            logger.error(f"❌ 迁移失败: {e}")
            session.rollback()
            logger.error("⚠️ 事务已回滚")
            raise

    def rollback(self, session: Session):
        """回滚迁移"""
        logger.info("回滚迁移001: 删除 implementation_date 字段")
        session.exec(text("DROP INDEX IF EXISTS idx_items_implementation_date;"))
        session.exec(text("ALTER TABLE items DROP COLUMN IF EXISTS implementation_date;"))
        session.commit()
        logger.info("✅ 回滚完成")


class Migration002_AddInputItemOptions(Migration):
    """
    迁移002: 为 input_items 表添加 options 字段

    变更内容:
    - 添加 options JSONB 字段（可空），保存 radio / select 的可选项
    """

    def __init__(self):
        super().__init__(
            version=2,
            description="Add options JSONB field to input_items table"
        )

    def check(self, session: Session) -> bool:
        """检查 input_items 表是否缺少 options 字段"""
        try:
            column_names = self._column_names(session, 'input_items')
            if column_names is None:
                logger.info("input_items 表不存在，跳过迁移")
                return False

            if 'options' not in column_names:
                logger.warning("检测到旧版本数据库结构: input_items 表缺少 options 字段")
                return True
            logger.info("input_items 表已包含 options 字段")
            return False

        except Exception as e:
            logger.error(f"检查迁移状态失败: {e}")
            return False

    def execute(self, session: Session):
        """执行迁移"""
        logger.info("=" * 80)
        logger.info(f"开始执行迁移 #{self.version}: {self.description}")
        logger.info("=" * 80)

        try:
            logger.info("Step 1/1: 添加 options 字段...")
            session.exec(text("""
                ALTER TABLE input_items
                ADD COLUMN IF NOT EXISTS options JSONB;
            """))
            session.commit()
            logger.info("✅ options 字段已添加")

            if 'options' not in (self._column_names(session, 'input_items') or []):
                raise Exception("验证失败: options 字段不存在")

            logger.info("=" * 80)
            logger.success(f"🎉 迁移 #{self.version} 执行成功！")
            logger.info("=" * 80)

        except Exception as e:
            logger.error(f"❌ 迁移失败: {e}")
            session.rollback()
            logger.error("⚠️ 事务已回滚")
            raise

    def rollback(self, session: Session):
        """回滚迁移"""
        logger.info("回滚迁移002: 删除 options 字段")
        session.exec(text("ALTER TABLE input_items DROP COLUMN IF EXISTS options;"))
        session.commit()
        logger.info("✅ 回滚完成")


# 注册所有迁移
ALL_MIGRATIONS = [
    Migration001_AddItemImplementationDate(),
    Migration002_AddInputItemOptions(),
]


def run_migrations(target_engine=None):
    """
    自动检测并执行所有待执行的迁移

    返回: (成功数, 跳过数, 失败数)
    """
    if target_engine is None:
        from asset_checker.database.connection import engine as target_engine

    logger.info("🔍 开始检查数据库迁移...")

    success_count = 0
    skipped_count = 0
    failed_count = 0

    with Session(target_engine) as session:
        for migration in ALL_MIGRATIONS:
            try:
                if not migration.check(session):
                    logger.info(f"⏭️  迁移 #{migration.version} 已执行或不需要执行，跳过")
                    skipped_count += 1
                    continue

                migration.execute(session)
                success_count += 1

            except Exception as e:
                logger.error(f"❌ 迁移 #{migration.version} 执行失败: {e}")
                failed_count += 1
                continue

    logger.info("=" * 80)
    logger.info(f"📊 迁移执行完成: 成功 {success_count}, 跳过 {skipped_count}, 失败 {failed_count}")
    logger.info("=" * 80)

    if failed_count > 0:
        logger.error("⚠️ 部分迁移失败，请检查日志并手动修复")
        raise Exception(f"{failed_count} 个迁移失败")

    return success_count, skipped_count, failed_count


def check_migrations(target_engine=None) -> bool:
    """
    检查是否有待执行的迁移

    返回: True 表示有待执行的迁移
    """
    if target_engine is None:
        from asset_checker.database.connection import engine as target_engine

    with Session(target_engine) as session:
        for migration in ALL_MIGRATIONS:
            try:
                if migration.check(session):
                    return True
            except Exception as e:
                logger.error(f"检查迁移 #{migration.version} 时出错: {e}")

    return False
