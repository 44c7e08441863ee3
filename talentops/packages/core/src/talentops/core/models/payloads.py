"""任务创建输入

项目向导（批量）和看板（单个）两条创建路径的输入结构。
两者最终都经过 seeding 模块生成完整的 Task。
"""

from datetime import date

from pydantic import BaseModel, Field

from .enums import Priority


class WizardTaskInput(BaseModel):
    """项目向导中为某个员工添加的一条自定义任务"""

    title: str = Field(min_length=1)
    hours: float | None = Field(default=None, description="分配工时，缺省为 8")
    priority: Priority | None = Field(default=None, description="缺省为 medium")
    due_date: date | None = Field(default=None, description="缺省为 7 天后")


class WizardAssignment(BaseModel):
    """向导中一个员工及其任务列表"""

    employee_id: str = Field(min_length=1)
    tasks: list[WizardTaskInput] = Field(default_factory=list)


class AdHocTaskInput(BaseModel):
    """组长/经理在任务视图中临时创建的任务"""

    title: str = Field(min_length=1)
    description: str = Field(default="")
    assigned_to: str | None = Field(default=None, description="为空表示团队任务")
    priority: Priority = Field(default=Priority.MEDIUM)
    start_date: date | None = None
    due_date: date | None = None
    allocated_hours: float | None = None
