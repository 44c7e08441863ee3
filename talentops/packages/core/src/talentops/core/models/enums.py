"""枚举定义 -- 任务生命周期阶段、阶段内子状态、粗粒度状态

包含 LifecyclePhase 有序阶段序列、SubState、TaskStatus、Priority、Role 等枚举，
以及 PHASE_SEQUENCE 顺序表、REVIEWER_ROLES 审批角色集合和 next_phase 推进函数。
"""

from enum import StrEnum


class LifecyclePhase(StrEnum):
    """任务生命周期阶段（有序）"""

    REQUIREMENT_REFINER = "requirement_refiner"
    DESIGN_GUIDANCE = "design_guidance"
    BUILD_GUIDANCE = "build_guidance"
    ACCEPTANCE_CRITERIA = "acceptance_criteria"
    DEPLOYMENT = "deployment"

    # 终态
    CLOSED = "closed"


class SubState(StrEnum):
    """阶段内子状态"""

    IN_PROGRESS = "in_progress"
    PENDING_VALIDATION = "pending_validation"
    APPROVED = "approved"
    # 历史数据中存在；引擎本身不会写入
    REJECTED = "rejected"


class TaskStatus(StrEnum):
    """粗粒度状态（由生命周期派生）"""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Priority(StrEnum):
    """任务优先级"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Role(StrEnum):
    """操作者角色"""

    EMPLOYEE = "employee"
    TEAM_LEAD = "team_lead"
    MANAGER = "manager"
    EXECUTIVE = "executive"


class TaskAction(StrEnum):
    """生命周期引擎支持的操作"""

    SUBMIT_PROOF = "submit_proof"
    APPROVE = "approve"
    REJECT = "reject"


class NotifyKind(StrEnum):
    """用户提示类型"""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


# 阶段推进顺序，不允许分支或跳过
PHASE_SEQUENCE: tuple[LifecyclePhase, ...] = (
    LifecyclePhase.REQUIREMENT_REFINER,
    LifecyclePhase.DESIGN_GUIDANCE,
    LifecyclePhase.BUILD_GUIDANCE,
    LifecyclePhase.ACCEPTANCE_CRITERIA,
    LifecyclePhase.DEPLOYMENT,
    LifecyclePhase.CLOSED,
)

# 进度条展示的工作阶段（不含 closed）
WORKING_PHASES: tuple[LifecyclePhase, ...] = PHASE_SEQUENCE[:-1]

TERMINAL_PHASES: set[LifecyclePhase] = {LifecyclePhase.CLOSED}

# 可以审批/驳回的角色
REVIEWER_ROLES: set[Role] = {Role.TEAM_LEAD, Role.MANAGER, Role.EXECUTIVE}

# 可以提交证明的子状态
SUBMITTABLE_SUB_STATES: set[SubState] = {
    SubState.IN_PROGRESS,
    SubState.PENDING_VALIDATION,
    SubState.REJECTED,
}


def phase_index(phase: LifecyclePhase) -> int:
    """返回阶段在 PHASE_SEQUENCE 中的位置"""
    return PHASE_SEQUENCE.index(phase)


def next_phase(phase: LifecyclePhase) -> LifecyclePhase:
    """计算下一阶段

    Args:
        phase: 当前阶段

    Returns:
        紧随其后的阶段；deployment 之后为 closed

    Raises:
        ValueError: 当前阶段已是终态
    """
    if phase in TERMINAL_PHASES:
        raise ValueError(f"Phase {phase} is terminal")
    return PHASE_SEQUENCE[phase_index(phase) + 1]


def derive_status(phase: LifecyclePhase) -> TaskStatus:
    """由生命周期阶段派生粗粒度状态"""
    if phase in TERMINAL_PHASES:
        return TaskStatus.COMPLETED
    return TaskStatus.IN_PROGRESS
