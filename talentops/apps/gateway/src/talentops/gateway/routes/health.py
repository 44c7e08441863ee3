"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性、证明文件目录、磁盘空间。
"""

import shutil

import structlog
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. sqlite: 数据库连通性
    2. proofs_dir: 证明文件目录可访问性
    3. disk_space_mb: 证明文件目录所在磁盘的剩余空间
    """
    checks = {}
    all_ok = True
    store_group = getattr(request.app.state, "store_group", None)

    # 1. SQLite 连通性检查
    try:
        cursor = await store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
    except Exception as e:
        log.warning("readiness_sqlite_failed", error=str(e))
        checks["sqlite"] = f"error: {str(e)}"
        all_ok = False

    # 2. 证明文件目录检查
    proofs_dir = None
    try:
        proofs_dir = store_group.proof_storage.proofs_dir
        if proofs_dir.exists() and proofs_dir.is_dir():
            checks["proofs_dir"] = "ok"
        else:
            checks["proofs_dir"] = "error: directory does not exist"
            all_ok = False
    except Exception as e:
        checks["proofs_dir"] = f"error: {str(e)}"
        all_ok = False

    # 3. 磁盘空间检查
    try:
        disk_usage = shutil.disk_usage(proofs_dir if checks["proofs_dir"] == "ok" else "/")
        disk_space_mb = disk_usage.free // (1024 * 1024)
        checks["disk_space_mb"] = disk_space_mb
    except OSError:
        checks["disk_space_mb"] = 0
        all_ok = False

    status_code = 200 if all_ok else 503
    status_text = "ready" if all_ok else "not_ready"

    return JSONResponse(
        status_code=status_code,
        content={
            "status": status_text,
            "checks": checks,
        },
    )
