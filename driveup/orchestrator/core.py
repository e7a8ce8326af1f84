"""Core orchestrator - wires collaborators into the upload pool."""
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..config import Credentials
from ..models import FileDescriptor, UploadConfig
from ..protocols import IUploadSessionClient
from ..services.api_client import GraphAPIClient
from ..services.auth import BearerAuth, GraphTokenProvider
from ..services.upload_session import GraphUploadSessionClient
from .file_collector import FileCollector
from .pool import UploadProcess, WorkerPool
from .registry import TaskRegistry
from .retrying import RetryingUploader

logger = logging.getLogger(__name__)


class UploadOrchestrator:
    """
    Orchestrates file and folder uploads using injected services.

    Usage:
        async with UploadOrchestrator(credentials) as orchestrator:
            process = orchestrator.upload(Path("movies"), "/Videos")
            result = await process.wait()

        # With a custom session client (tests, other providers)
        async with UploadOrchestrator(session_client=fake) as orchestrator:
            ...
    """

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        config: Optional[UploadConfig] = None,
        session_client: Optional[IUploadSessionClient] = None,
        collector: Optional[FileCollector] = None,
    ):
        """
        Initialize orchestrator with dependencies.

        Args:
            credentials: Graph app credentials; required unless session_client is given
            config: Upload configuration
            session_client: Pre-built resumable upload primitive
            collector: File collector (defaults to the config's filter)
        """
        if credentials is None and session_client is None:
            raise ValueError("Either credentials or session_client must be provided")

        self._credentials = credentials
        self._config = config or UploadConfig()
        self._external_client = session_client
        self._collector = collector or FileCollector(self._config)

        # Initialized in __aenter__
        self._api_client: Optional[GraphAPIClient] = None
        self._session_client: Optional[IUploadSessionClient] = None
        self._registry = TaskRegistry()
        self._uploader: Optional[RetryingUploader] = None
        self._pool: Optional[WorkerPool] = None

    async def __aenter__(self):
        """Initialize services and the worker pool."""
        if self._external_client is not None:
            self._session_client = self._external_client
        else:
            tokens = GraphTokenProvider(
                self._credentials.tenant_id,
                self._credentials.client_id,
                self._credentials.client_secret,
            )
            self._api_client = GraphAPIClient(BearerAuth(tokens))
            await self._api_client.__aenter__()
            self._session_client = GraphUploadSessionClient(
                self._api_client,
                self._credentials.user_id,
                self._config,
            )

        self._uploader = RetryingUploader(self._session_client, self._registry, self._config)
        self._pool = WorkerPool(self._uploader)
        return self

    async def __aexit__(self, *args):
        """Cleanup resources."""
        if self._external_client is None and self._session_client is not None:
            await self._session_client.aclose()
        if self._api_client:
            await self._api_client.__aexit__(*args)

    @property
    def config(self) -> UploadConfig:
        return self._config

    @property
    def registry(self) -> TaskRegistry:
        return self._registry

    def collect(self, path: Path) -> Tuple[Path, List[FileDescriptor]]:
        """Files that ``upload(path, ...)`` would send, in upload order."""
        return self._collector.collect(path)

    def upload(self, path: Path, dest: str) -> UploadProcess:
        """
        Upload a file or folder tree into ``dest``.

        Returns an UploadProcess whose ``wait()`` resolves once every file
        has finished or been abandoned.
        """
        _, files = self.collect(path)
        return self.upload_files(files, dest)

    def upload_files(self, files: Sequence[FileDescriptor], dest: str) -> UploadProcess:
        """Schedule already collected files."""
        assert self._pool is not None, "UploadOrchestrator not initialized. Use 'async with' context."
        return self._pool.schedule(files, dest, self._config.max_concurrent)
