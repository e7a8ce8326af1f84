"""Orchestrator package - schedules and tracks concurrent uploads."""
from .core import UploadOrchestrator
from .models import PoolResult, PoolState, ProcessState
from .pool import UploadProcess, WorkerPool
from .registry import TaskRegistry
from .retrying import RetryingUploader

__all__ = [
    "UploadOrchestrator",
    "PoolResult",
    "PoolState",
    "ProcessState",
    "RetryingUploader",
    "TaskRegistry",
    "UploadProcess",
    "WorkerPool",
]
