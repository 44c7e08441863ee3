"""Actor Domain Model

当前操作者身份。由调用方显式传入引擎和服务，不从全局上下文读取。
"""

from pydantic import BaseModel, Field

from .enums import REVIEWER_ROLES, Role


class Actor(BaseModel):
    """操作者：用户 ID + 角色 + 组织 + 当前项目"""

    actor_id: str = Field(min_length=1, description="用户 ID")
    role: Role = Field(default=Role.EMPLOYEE, description="角色")
    org_id: str = Field(default="", description="组织 ID")
    project_id: str | None = Field(default=None, description="当前激活的项目")

    @property
    def is_reviewer(self) -> bool:
        return self.role in REVIEWER_ROLES
