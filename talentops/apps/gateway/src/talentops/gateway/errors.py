"""错误响应 -- 统一为 {"error": {"code", "message"}} 结构

TaskLifecycleError 及其子类自带 code / http_status，直接映射为 JSON 响应。
"""

from fastapi import Request
from starlette.responses import JSONResponse
from talentops.core.exceptions import TaskLifecycleError


class ActorHeaderError(TaskLifecycleError):
    """请求头中缺少或携带了非法的操作者身份"""

    code = "UNAUTHENTICATED"
    http_status = 401


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
            }
        },
    )


async def lifecycle_error_handler(request: Request, exc: TaskLifecycleError) -> JSONResponse:
    """FastAPI 异常处理器：TaskLifecycleError -> JSON 错误响应"""
    return error_response(exc.http_status, exc.code, exc.message)
