"""Task Domain Model

tasks 表中每一行对应一个 Task。
生命周期字段 (lifecycle_state, sub_state) 在创建时必填，
之后只能通过生命周期引擎的 submit_proof / approve / reject 修改。
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from .enums import (
    PHASE_SEQUENCE,
    LifecyclePhase,
    Priority,
    SubState,
    TaskStatus,
)


def _all_phases() -> list[LifecyclePhase]:
    return list(PHASE_SEQUENCE)


class PhaseValidations(BaseModel):
    """阶段配置信息（创建时写入，引擎不修改）"""

    active_phases: list[LifecyclePhase] = Field(
        default_factory=_all_phases,
        description="该任务启用的阶段列表",
    )


class Task(BaseModel):
    """Task 数据模型

    status 由 lifecycle_state 派生，每次引擎写入时一并重写。
    """

    task_id: str = Field(description="唯一标识，ULID 格式")
    project_id: str = Field(description="所属项目 ID")
    org_id: str = Field(description="所属组织 ID")
    title: str = Field(min_length=1, description="任务标题")
    description: str = Field(default="", description="任务描述")
    assigned_to: str | None = Field(default=None, description="执行人 ID")
    assigned_by: str = Field(description="指派人 ID")
    priority: Priority = Field(default=Priority.MEDIUM, description="优先级")
    status: TaskStatus = Field(default=TaskStatus.IN_PROGRESS, description="粗粒度状态")
    lifecycle_state: LifecyclePhase = Field(
        default=LifecyclePhase.REQUIREMENT_REFINER,
        description="当前生命周期阶段",
    )
    sub_state: SubState = Field(default=SubState.IN_PROGRESS, description="阶段内子状态")
    proof_url: str | None = Field(default=None, description="最近一次提交的证明")
    allocated_hours: float = Field(default=8.0, ge=0, description="分配工时")
    start_date: date | None = Field(default=None, description="开始日期")
    due_date: date | None = Field(default=None, description="截止日期")
    phase_validations: PhaseValidations = Field(
        default_factory=PhaseValidations,
        description="阶段配置",
    )
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    @property
    def is_closed(self) -> bool:
        return self.lifecycle_state == LifecyclePhase.CLOSED


class TaskFilter(BaseModel):
    """任务查询条件，未设置的字段不参与筛选"""

    org_id: str | None = None
    project_id: str | None = None
    assigned_to: str | None = None
    status: TaskStatus | None = None
