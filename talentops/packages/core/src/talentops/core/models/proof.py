"""StoredProof Domain Model

证明文件上传后的元数据。proof_url 只保存 url，
其余字段用于日志和失败后的清理。
"""

from datetime import datetime

from pydantic import BaseModel, Field


class StoredProof(BaseModel):
    """已存储的证明文件"""

    url: str = Field(description="公开访问 URL")
    storage_path: str = Field(description="存储桶内相对路径")
    filename: str = Field(description="原始文件名")
    content_type: str = Field(default="application/octet-stream", description="MIME 类型")
    size: int = Field(default=0, description="内容大小（字节）")
    hash: str = Field(default="", description="SHA-256 哈希")
    uploaded_at: datetime = Field(description="上传时间")
