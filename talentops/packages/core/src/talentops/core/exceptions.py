"""任务生命周期异常体系

三类错误：
- 校验错误：输入或当前状态不满足前置条件，操作者修正后重试
- 竞争失败：条件写入命中 0 行，提示刷新，不自动重试
- 瞬时 I/O 错误：存储或文件写入失败，任务保持不变，可重试

每个异常带有稳定的 code 和建议的 HTTP 状态码，供 gateway 直接映射。
"""


class TaskLifecycleError(Exception):
    """生命周期基础异常"""

    code = "TASK_LIFECYCLE_ERROR"
    http_status = 400

    def __init__(self, message: str, recoverable: bool = False) -> None:
        """
        Args:
            message: 面向用户的错误描述
            recoverable: 原样重试是否可能成功
        """
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable


# ---- 校验错误 ----


class TaskNotFoundError(TaskLifecycleError):
    code = "TASK_NOT_FOUND"
    http_status = 404

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist")
        self.task_id = task_id


class ProjectNotFoundError(TaskLifecycleError):
    code = "PROJECT_NOT_FOUND"
    http_status = 404

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project with id {project_id} does not exist")
        self.project_id = project_id


class NotPendingValidationError(TaskLifecycleError):
    """approve / reject 时任务不在 pending_validation"""

    code = "NOT_PENDING_VALIDATION"
    http_status = 409

    def __init__(self, task_id: str, sub_state: str) -> None:
        super().__init__("Task is not pending validation")
        self.task_id = task_id
        self.sub_state = sub_state


class TaskClosedError(TaskLifecycleError):
    """任务已关闭，不接受任何操作"""

    code = "TASK_CLOSED"
    http_status = 409

    def __init__(self, task_id: str) -> None:
        super().__init__("Task is closed")
        self.task_id = task_id


class EmptyProofError(TaskLifecycleError):
    code = "EMPTY_PROOF"
    http_status = 422

    def __init__(self, message: str = "Please select a file to upload") -> None:
        super().__init__(message)


class NotAuthorizedError(TaskLifecycleError):
    code = "FORBIDDEN"
    http_status = 403


class InvalidTaskError(TaskLifecycleError):
    """创建任务时字段不合法"""

    code = "INVALID_TASK"
    http_status = 422

    def __init__(self, message: str, index: int | None = None) -> None:
        """
        Args:
            message: 面向用户的错误描述
            index: 批量创建时被拒绝的行号（从 0 开始）
        """
        super().__init__(message)
        self.index = index


class RequestInFlightError(TaskLifecycleError):
    """同一任务上一请求尚未完成"""

    code = "REQUEST_IN_FLIGHT"
    http_status = 409

    def __init__(self, task_id: str) -> None:
        super().__init__("Another request for this task is still in progress", recoverable=True)
        self.task_id = task_id


# ---- 竞争失败 ----


class TaskStateConflictError(TaskLifecycleError):
    """条件写入未命中任何行（其他人已修改该任务）"""

    code = "TASK_STATE_CHANGED"
    http_status = 409

    def __init__(self, task_id: str, expected_sub_state: str) -> None:
        super().__init__("Task state changed, please refresh")
        self.task_id = task_id
        self.expected_sub_state = expected_sub_state


# ---- 瞬时 I/O 错误 ----


class StoreUnavailableError(TaskLifecycleError):
    code = "STORE_UNAVAILABLE"
    http_status = 503

    def __init__(self, original_error: Exception) -> None:
        super().__init__(f"Task store unavailable: {original_error}", recoverable=True)
        self.original_error = original_error


class InsertError(TaskLifecycleError):
    """批量插入中有行被拒绝，整批回滚"""

    code = "INSERT_FAILED"
    http_status = 422

    def __init__(self, index: int, title: str, reason: str) -> None:
        super().__init__(
            f"Task #{index} ({title!r}) was rejected: {reason}",
            recoverable=True,
        )
        self.index = index
        self.title = title
        self.reason = reason


class StorageError(TaskLifecycleError):
    """证明文件被拒绝（大小/类型）或写入失败"""

    code = "STORAGE_ERROR"
    http_status = 502

    def __init__(self, message: str, http_status: int | None = None) -> None:
        super().__init__(message, recoverable=True)
        if http_status is not None:
            self.http_status = http_status
