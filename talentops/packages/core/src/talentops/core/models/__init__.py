"""TalentOps Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .actor import Actor
from .enums import (
    PHASE_SEQUENCE,
    REVIEWER_ROLES,
    SUBMITTABLE_SUB_STATES,
    TERMINAL_PHASES,
    WORKING_PHASES,
    LifecyclePhase,
    NotifyKind,
    Priority,
    Role,
    SubState,
    TaskAction,
    TaskStatus,
    derive_status,
    next_phase,
    phase_index,
)
from .note import Project, TaskNote
from .payloads import AdHocTaskInput, WizardAssignment, WizardTaskInput
from .proof import StoredProof
from .task import PhaseValidations, Task, TaskFilter

__all__ = [
    # 枚举
    "LifecyclePhase",
    "SubState",
    "TaskStatus",
    "Priority",
    "Role",
    "TaskAction",
    "NotifyKind",
    # 状态机
    "PHASE_SEQUENCE",
    "WORKING_PHASES",
    "TERMINAL_PHASES",
    "REVIEWER_ROLES",
    "SUBMITTABLE_SUB_STATES",
    "phase_index",
    "next_phase",
    "derive_status",
    # Task
    "Task",
    "TaskFilter",
    "PhaseValidations",
    # Actor
    "Actor",
    # Note / Project
    "TaskNote",
    "Project",
    # Proof
    "StoredProof",
    # 创建输入
    "WizardTaskInput",
    "WizardAssignment",
    "AdHocTaskInput",
]
