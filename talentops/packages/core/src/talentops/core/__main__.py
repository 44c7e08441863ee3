"""CLI 入口模块 -- python -m talentops.core <command>

支持的命令：
  normalize-legacy  为缺少生命周期字段的旧任务补齐 lifecycle_state / sub_state
"""

import asyncio
import sys

from .config import get_db_path, get_proofs_dir


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m talentops.core <command>")
        print("命令:")
        print("  normalize-legacy  规整旧版任务的生命周期字段")
        sys.exit(1)

    command = sys.argv[1]

    if command == "normalize-legacy":
        asyncio.run(normalize_legacy())
    else:
        print(f"未知命令: {command}")
        print("可用命令: normalize-legacy")
        sys.exit(1)


async def normalize_legacy() -> int:
    """执行旧数据规整，返回规整的行数"""
    from .store import create_store_group, migrate_legacy_tasks

    db_path = get_db_path()
    proofs_dir = get_proofs_dir()

    print(f"数据库路径: {db_path}")
    print("开始规整旧任务...")

    store_group = await create_store_group(db_path, proofs_dir, normalize_legacy=False)

    try:
        count = await migrate_legacy_tasks(store_group.conn, store_group.task_store)
        print(f"规整完成，处理 {count} 条任务")
    finally:
        await store_group.conn.close()
    return count


if __name__ == "__main__":
    main()
