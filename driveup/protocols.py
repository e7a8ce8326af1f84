"""
Protocols (Interfaces) for Dependency Inversion.

The orchestration layer only sees these; the Graph implementations live
in ``driveup.services``.
"""
from typing import Awaitable, Callable, Optional, Protocol, Union, runtime_checkable

from .models import FileDescriptor, UploadSession, UploadedItem


# Called with (min_value, max_value) for each acknowledged byte range.
ProgressCallback = Callable[[int, int], Union[None, Awaitable[None]]]


@runtime_checkable
class IUploadSessionClient(Protocol):
    """Resumable byte-range upload primitive."""

    async def create_session(self, remote_path: str) -> UploadSession:
        """Open a resumable upload session for ``remote_path``."""
        ...

    async def upload(
        self,
        file: FileDescriptor,
        session: UploadSession,
        progress_callback: Optional[ProgressCallback] = None,
        resume: bool = False,
    ) -> UploadedItem:
        """Send the file through ``session`` and return the created item."""
        ...

