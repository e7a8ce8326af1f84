"""Orchestrator data models."""
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, List

from ..models import FileDescriptor, UploadOutcome


class ProcessState(Enum):
    """State of an upload process."""
    PENDING = "pending"
    RUNNING = "running"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


@dataclass
class PoolState:
    """Scheduler bookkeeping; owned by the pool alone."""
    total_files: int = 0
    pending: Deque[FileDescriptor] = field(default_factory=deque)
    active_count: int = 0

    @property
    def drained(self) -> bool:
        return not self.pending and self.active_count == 0


@dataclass
class PoolResult:
    """Result of a whole upload run."""
    total_files: int
    uploaded: List[UploadOutcome] = field(default_factory=list)
    failed: List[UploadOutcome] = field(default_factory=list)
    cancelled: bool = False

    @property
    def success(self) -> bool:
        return not self.cancelled and not self.failed

    @property
    def all_success(self) -> bool:
        return self.success and len(self.uploaded) == self.total_files
