#!/usr/bin/env python
"""
手动执行数据库迁移脚本

用法:
    python run_migration.py                 # 执行所有待执行的迁移
    python run_migration.py --check         # 仅检查是否有待执行的迁移
    python run_migration.py --list          # 列出已注册的迁移
    python run_migration.py --rollback 2    # 回滚指定版本的迁移
"""
import sys
from loguru import logger
from sqlmodel import Session

from asset_checker.database.connection import engine
from asset_checker.database.migrations import ALL_MIGRATIONS, run_migrations, check_migrations


def list_migrations():
    with Session(engine) as session:
        for migration in ALL_MIGRATIONS:
            pending = migration.check(session)
            mark = "待执行" if pending else "已完成"
            logger.info(f"#{migration.version:03d} [{mark}] {migration.description}")


def rollback_migration(version: int) -> bool:
    migration = next((m for m in ALL_MIGRATIONS if m.version == version), None)
    if migration is None:
        logger.error(f"未找到迁移 #{version}")
        return False
    with Session(engine) as session:
        migration.rollback(session)
    return True


def main():
    args = sys.argv[1:]

    if args and args[0] == '--check':
        if check_migrations():
            logger.warning("⚠️ 存在待执行的迁移")
            sys.exit(1)
        logger.success("✅ 所有迁移已完成")
        sys.exit(0)

    if args and args[0] == '--list':
        list_migrations()
        sys.exit(0)

    if args and args[0] == '--rollback':
        if len(args) < 2 or not args[1].isdigit():
            logger.error("用法: python run_migration.py --rollback <版本号>")
            sys.exit(2)
        sys.exit(0 if rollback_migration(int(args[1])) else 1)

    try:
        success, skipped, failed = run_migrations()
        logger.success(f"✅ 迁移执行完成（执行 {success}，跳过 {skipped}）")
        sys.exit(0)
    except Exception as e:
        logger.error(f"迁移失败: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
