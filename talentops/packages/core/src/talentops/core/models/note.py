"""TaskNote / Project Domain Model

task_notes 表 append-only，不允许更新或删除。
"""

from datetime import datetime

from pydantic import BaseModel, Field


class TaskNote(BaseModel):
    """任务备注"""

    note_id: str = Field(description="唯一标识，ULID 格式")
    task_id: str = Field(description="关联的 Task ID")
    org_id: str = Field(description="所属组织 ID")
    author_id: str = Field(description="作者 ID")
    note_text: str = Field(min_length=1, description="备注内容")
    created_at: datetime = Field(description="创建时间")


class Project(BaseModel):
    """项目（仅保留任务归属和名称展示所需字段）"""

    project_id: str = Field(description="唯一标识，ULID 格式")
    org_id: str = Field(description="所属组织 ID")
    name: str = Field(min_length=1, description="项目名称")
    created_at: datetime = Field(description="创建时间")
