"""
Models for driveup.

Descriptors and results are immutable dataclasses; ``Task`` is the one
mutable record, updated in place as bytes are acknowledged.
"""
import os
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Optional, Tuple

from .errors import ConfigError


MiB = 1024 * 1024
# Graph requires upload chunks to be a multiple of 320 KiB
CHUNK_ALIGNMENT = 320 * 1024


class UploadStatus(Enum):
    """Terminal status of one file upload."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class FileDescriptor:
    """A file discovered for upload."""
    relative_path: str
    absolute_path: Path
    size: int

    @property
    def name(self) -> str:
        return PurePosixPath(self.relative_path).name

    def remote_dir(self, destination: str) -> str:
        """Destination folder for this file, keeping its relative parent."""
        parent = PurePosixPath(self.relative_path.replace(os.sep, "/")).parent
        base = PurePosixPath("/") / destination.replace("\\", "/").strip("/")
        if str(parent) in ("", "."):
            return str(base)
        return str(base / parent)

    def remote_path(self, destination: str) -> str:
        return str(PurePosixPath(self.remote_dir(destination)) / self.name)


@dataclass
class Task:
    """Live progress record for one in-flight upload."""
    file_path: str
    size: int
    speed: float = 0.0
    uploaded: int = 0

    @property
    def filename(self) -> str:
        return self.file_path

    @property
    def percent(self) -> float:
        if self.size <= 0:
            return 100.0
        return (self.uploaded / self.size) * 100


@dataclass(frozen=True)
class UploadSession:
    """Opaque resumable session handle returned by the provider."""
    upload_url: str
    expiration: Optional[str] = None
    next_expected_ranges: Tuple[str, ...] = ()

    @property
    def next_offset(self) -> int:
        """First byte the provider still expects (0 when unknown)."""
        if not self.next_expected_ranges:
            return 0
        start = self.next_expected_ranges[0].split("-", 1)[0]
        return int(start) if start else 0


@dataclass(frozen=True)
class UploadedItem:
    """Metadata of the remote object created by a finished upload."""
    id: str
    name: str
    size: int
    created: Optional[datetime] = None

    @classmethod
    def from_drive_item(cls, data: dict) -> "UploadedItem":
        created = data.get("createdDateTime")
        created_at = None
        if created:
            created_at = datetime.fromisoformat(created.replace("Z", "+00:00"))
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            size=int(data.get("size") or 0),
            created=created_at,
        )


@dataclass(frozen=True)
class UploadOutcome:
    """Result of one file's upload lifecycle."""
    file: FileDescriptor
    status: UploadStatus = UploadStatus.SUCCESS
    item: Optional[UploadedItem] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == UploadStatus.SUCCESS

    @classmethod
    def ok(cls, file: FileDescriptor, item: UploadedItem):
        return cls(file=file, status=UploadStatus.SUCCESS, item=item)

    @classmethod
    def fail(cls, file: FileDescriptor, error: str):
        return cls(file=file, status=UploadStatus.FAILED, error=error)


@dataclass(frozen=True)
class UploadConfig:
    """Immutable configuration for upload operations."""
    max_concurrent: int = 5
    chunk_size: int = 5 * MiB
    retry_delay: float = 3.0
    min_file_size: int = 10 * MiB
    extensions: Tuple[str, ...] = (".mp4", ".mkv")
    conflict_behavior: str = "rename"

    def __post_init__(self):
        if self.max_concurrent < 1:
            raise ConfigError(f"max_concurrent must be at least 1, got {self.max_concurrent}")
        if self.chunk_size <= 0 or self.chunk_size % CHUNK_ALIGNMENT:
            raise ConfigError(
                f"chunk_size must be a positive multiple of {CHUNK_ALIGNMENT} bytes, got {self.chunk_size}"
            )
        if self.retry_delay < 0:
            raise ConfigError(f"retry_delay must not be negative, got {self.retry_delay}")

    def accepts(self, name: str, size: int) -> bool:
        """Directory filter: allowed extension and large enough."""
        suffix = PurePosixPath(name).suffix.lower()
        return suffix in self.extensions and size >= self.min_file_size

    @classmethod
    def from_env(cls) -> "UploadConfig":
        """Build config from optional DRIVEUP_* overrides."""
        overrides = {}
        for key, env_name, cast in (
            ("max_concurrent", "DRIVEUP_MAX_CONCURRENT", int),
            ("retry_delay", "DRIVEUP_RETRY_DELAY", float),
            ("chunk_size", "DRIVEUP_CHUNK_SIZE", int),
        ):
            raw = os.getenv(env_name)
            if not raw:
                continue
            try:
                overrides[key] = cast(raw)
            except ValueError as exc:
                raise ConfigError(f"{env_name} is not a valid number: {raw!r}") from exc
        return cls(**overrides)
