"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + Notifier 初始化 + 路由注册
+ 证明文件静态挂载。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from talentops.core.config import get_db_path, get_proofs_dir, load_proof_storage_config
from talentops.core.exceptions import TaskLifecycleError
from talentops.core.store import create_store_group

from .errors import lifecycle_error_handler
from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import health, lifecycle, notes, notifications, projects, tasks
from .services.notifier import Notifier

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB，关闭时清理连接"""
    db_path = get_db_path()
    proofs_dir = get_proofs_dir()
    store_group = await create_store_group(
        db_path,
        proofs_dir,
        app.state.proof_config,
    )
    app.state.store_group = store_group
    app.state.notifier = Notifier()
    log.info("gateway_started", db_path=db_path, proofs_dir=str(proofs_dir))

    yield

    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="TalentOps Gateway",
        version="0.1.0",
        description="TalentOps 任务生命周期 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(TaskLifecycleError, lifecycle_error_handler)

    setup_logging()
    setup_logfire(app)

    app.include_router(projects.router, tags=["projects"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(lifecycle.router, tags=["lifecycle"])
    app.include_router(notes.router, tags=["notes"])
    app.include_router(notifications.router, tags=["notifications"])
    app.include_router(health.router, tags=["health"])

    # 证明文件公开访问；check_dir=False 允许目录在 lifespan 中才创建
    # public_base_url 为外部 CDN 地址时由外部提供访问，不挂载
    proof_config = load_proof_storage_config()
    app.state.proof_config = proof_config
    if proof_config.public_base_url.startswith("/"):
        app.mount(
            proof_config.public_base_url,
            StaticFiles(directory=str(get_proofs_dir()), check_dir=False),
            name="proofs",
        )

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
