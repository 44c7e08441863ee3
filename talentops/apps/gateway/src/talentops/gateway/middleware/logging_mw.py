"""LoggingMiddleware

为每个 HTTP 请求生成 request_id，并把操作者身份（actor_id / role / org_id / project_id）
绑定到 structlog contextvars，服务层的审批、驳回等日志因此都能追溯到操作者。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

# 请求头 -> 日志字段
_ACTOR_HEADERS = (
    ("X-Actor-Id", "actor_id"),
    ("X-Actor-Role", "role"),
    ("X-Org-Id", "org_id"),
    ("X-Project-Id", "project_id"),
)


def actor_log_context(request: Request) -> dict[str, str]:
    """从操作者请求头提取日志字段；空值省略，角色统一小写"""
    context: dict[str, str] = {}
    for header, key in _ACTOR_HEADERS:
        value = request.headers.get(header, "").strip()
        if value:
            context[key] = value.lower() if key == "role" else value
    return context


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(ULID())
        actor = actor_log_context(request)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            **actor,
        )

        log = structlog.get_logger()
        await log.ainfo("request_started", **actor)
        started = time.perf_counter()

        response = await call_next(request)

        await log.ainfo(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
            **actor,
        )

        response.headers["X-Request-ID"] = request_id
        return response
