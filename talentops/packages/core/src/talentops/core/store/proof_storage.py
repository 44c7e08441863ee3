"""ProofStorage 本地文件系统实现

证明文件按 {actor_id}/{task_id}_{毫秒时间戳}.{ext} 存放在 proofs 目录下，
通过 gateway 的静态挂载以 {public_base_url}/{storage_path} 公开访问。
"""

import hashlib
import re
from datetime import UTC, datetime
from pathlib import Path, PurePath

import structlog

from ..config import ProofStorageConfig
from ..exceptions import EmptyProofError, StorageError
from ..models.proof import StoredProof

log = structlog.get_logger()

_UNSAFE_FILENAME_CHARS = re.compile(r"[\[\]{}]")
_UNSAFE_SEGMENT_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def compute_hash_and_size(content: bytes) -> tuple[str, int]:
    """计算 SHA-256 hash 和内容大小

    Returns:
        (sha256_hex, size_bytes) 元组
    """
    return hashlib.sha256(content).hexdigest(), len(content)


def sanitize_filename(filename: str) -> str:
    """去掉路径部分和 []{} 字符，空白替换为下划线"""
    name = PurePath(filename.replace("\\", "/")).name
    name = _UNSAFE_FILENAME_CHARS.sub("", name)
    return re.sub(r"\s+", "_", name.strip())


def _safe_segment(value: str) -> str:
    segment = _UNSAFE_SEGMENT_CHARS.sub("_", value).strip(".")
    return segment or "_"


def file_extension(filename: str) -> str:
    """小写扩展名（不含点），没有扩展名时返回空串"""
    return PurePath(sanitize_filename(filename)).suffix.lstrip(".").lower()


def build_storage_path(
    actor_id: str,
    task_id: str,
    filename: str,
    now: datetime | None = None,
) -> str:
    """生成存储桶内的相对路径"""
    now = now or datetime.now(UTC)
    millis = int(now.timestamp() * 1000)
    stem = f"{_safe_segment(task_id)}_{millis}"
    ext = file_extension(filename)
    name = f"{stem}.{_safe_segment(ext)}" if ext else stem
    return f"{_safe_segment(actor_id)}/{name}"


def _format_size_limit(max_bytes: int) -> str:
    return f"{max_bytes / (1024 * 1024):g}MB"


class LocalProofStorage:
    """ProofStorage 的本地文件系统实现"""

    def __init__(self, proofs_dir: Path, config: ProofStorageConfig | None = None) -> None:
        self._proofs_dir = proofs_dir
        self._config = config or ProofStorageConfig()

    @property
    def proofs_dir(self) -> Path:
        return self._proofs_dir

    @property
    def config(self) -> ProofStorageConfig:
        return self._config

    @property
    def max_bytes(self) -> int:
        return self._config.max_bytes

    async def upload_proof(
        self,
        task_id: str,
        actor_id: str,
        filename: str,
        content: bytes,
        content_type: str | None = None,
    ) -> StoredProof:
        """校验并写入证明文件

        Raises:
            EmptyProofError: 未选择文件或文件为空
            StorageError: 超过大小上限(413)、扩展名被禁止(415)或写入失败
        """
        if not filename or not content:
            raise EmptyProofError()

        hash_hex, size = compute_hash_and_size(content)
        if size > self._config.max_bytes:
            raise StorageError(
                f"File size must be less than {_format_size_limit(self._config.max_bytes)}",
                http_status=413,
            )

        ext = file_extension(filename)
        if ext in self._config.blocked_extensions:
            raise StorageError(f"File type .{ext} is not allowed", http_status=415)

        now = datetime.now(UTC)
        storage_path = build_storage_path(actor_id, task_id, filename, now)
        file_path = self._proofs_dir / storage_path
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(content)
        except OSError as e:
            log.error(
                "proof_write_failed",
                task_id=task_id,
                storage_path=storage_path,
                error=str(e),
            )
            raise StorageError(f"Failed to store proof: {e}") from e

        proof = StoredProof(
            url=f"{self._config.public_base_url}/{storage_path}",
            storage_path=storage_path,
            filename=sanitize_filename(filename),
            content_type=content_type or "application/octet-stream",
            size=size,
            hash=hash_hex,
            uploaded_at=now,
        )
        await log.ainfo(
            "proof_uploaded",
            task_id=task_id,
            storage_path=storage_path,
            size=size,
        )
        return proof

    def resolve(self, storage_path: str) -> Path:
        """存储路径 -> 本地文件路径"""
        return self._proofs_dir / storage_path

    def discard(self, proof: StoredProof) -> None:
        """删除已写入但未能关联到任务的证明文件"""
        try:
            self.resolve(proof.storage_path).unlink(missing_ok=True)
        except OSError as e:
            log.warning(
                "proof_discard_failed",
                storage_path=proof.storage_path,
                error=str(e),
            )
