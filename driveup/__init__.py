"""
driveup - concurrent resumable uploads to OneDrive.

Usage:
    from driveup import UploadOrchestrator, Credentials, UploadConfig

    credentials = Credentials.from_env()
    async with UploadOrchestrator(credentials, UploadConfig(max_concurrent=3)) as orchestrator:
        process = orchestrator.upload(Path("recordings"), "/Videos")
        process.on_task_failed(lambda file, exc: print(f"Dropped {file.relative_path}: {exc}"))
        result = await process.wait()
"""
from .config import Credentials
from .errors import (
    AuthenticationError,
    ConfigError,
    DriveUpError,
    ProviderError,
    SessionExpiredError,
    TransientUploadError,
)
from .models import FileDescriptor, Task, UploadConfig, UploadedItem, UploadOutcome, UploadSession, UploadStatus
from .orchestrator import PoolResult, UploadOrchestrator, UploadProcess

__version__ = "0.1.0"
__all__ = [
    # Main
    "UploadOrchestrator",
    "UploadProcess",
    "PoolResult",
    # Models
    "Credentials",
    "FileDescriptor",
    "Task",
    "UploadConfig",
    "UploadedItem",
    "UploadOutcome",
    "UploadSession",
    "UploadStatus",
    # Errors
    "AuthenticationError",
    "ConfigError",
    "DriveUpError",
    "ProviderError",
    "SessionExpiredError",
    "TransientUploadError",
]
