"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、证明文件目录、证明文件上传限制、任务创建默认值等可配置项。
"""

import os
from pathlib import Path

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TALENTOPS_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TALENTOPS_DB_PATH",
        str(_get_base_dir() / "sqlite" / "talentops.db"),
    )


def get_proofs_dir() -> Path:
    """获取证明文件存储目录"""
    return Path(
        os.environ.get(
            "TALENTOPS_PROOFS_DIR",
            str(_get_base_dir() / "proofs"),
        )
    )


def env_number(
    env_var: str,
    default: int | float,
    minimum: int | float,
    event: str = "invalid_number_config",
) -> int | float:
    """读取数值型环境变量

    未设置时返回默认值；无法解析或小于 minimum 时记录 warning 并回退到默认值。
    返回值类型与 default 相同。
    """
    val = os.environ.get(env_var)
    if val is None or not val.strip():
        return default
    try:
        number = type(default)(val)
    except ValueError:
        number = None
    # NaN 与任何数比较都为 False，一并回退
    if number is None or not number >= minimum:
        log.warning(event, env_var=env_var, value=val, fallback=default)
        return default
    return number


# 向导创建任务时的默认工时
DEFAULT_ALLOCATED_HOURS: float = env_number("TALENTOPS_DEFAULT_ALLOCATED_HOURS", 8.0, 0)

# 向导创建任务时的默认截止天数
DEFAULT_DUE_DAYS: int = env_number("TALENTOPS_DEFAULT_DUE_DAYS", 7, 0)

# 任务列表搜索词最大长度
SEARCH_QUERY_MAX_LENGTH: int = 200

_DEFAULT_PROOF_MAX_BYTES = 10 * 1024 * 1024
_DEFAULT_BLOCKED_EXTENSIONS = ["exe", "bat", "cmd", "com", "msi", "sh"]


class ProofStorageConfig(BaseModel):
    """证明文件存储配置

    环境变量:
        TALENTOPS_PROOF_PUBLIC_BASE_URL: 公开访问前缀（默认 /proofs）
        TALENTOPS_PROOF_MAX_BYTES: 单个文件大小上限（默认 10MB）
        TALENTOPS_PROOF_BLOCKED_EXTENSIONS: 禁止上传的扩展名，逗号分隔
    """

    public_base_url: str = Field(default="/proofs", description="公开访问 URL 前缀")
    max_bytes: int = Field(
        default=_DEFAULT_PROOF_MAX_BYTES,
        ge=1,
        description="单个文件大小上限（字节）",
    )
    blocked_extensions: list[str] = Field(
        default_factory=lambda: list(_DEFAULT_BLOCKED_EXTENSIONS),
        description="禁止上传的扩展名（小写，不含点）",
    )


def load_proof_storage_config() -> ProofStorageConfig:
    """从环境变量加载证明文件存储配置

    非法数值记录 warning 并回退到默认值，不阻塞启动。
    """
    kwargs: dict = {}

    if val := os.environ.get("TALENTOPS_PROOF_PUBLIC_BASE_URL"):
        kwargs["public_base_url"] = val.rstrip("/")

    kwargs["max_bytes"] = env_number(
        "TALENTOPS_PROOF_MAX_BYTES",
        _DEFAULT_PROOF_MAX_BYTES,
        1,
        event="invalid_proof_max_bytes_config",
    )

    if val := os.environ.get("TALENTOPS_PROOF_BLOCKED_EXTENSIONS"):
        kwargs["blocked_extensions"] = [
            ext.strip().lower().lstrip(".") for ext in val.split(",") if ext.strip()
        ]

    return ProofStorageConfig(**kwargs)
