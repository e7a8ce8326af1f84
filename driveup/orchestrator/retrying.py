"""Per-file upload lifecycle with unbounded resume-on-failure retries."""
import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from ..errors import SessionExpiredError, is_permanent
from ..models import FileDescriptor, UploadConfig, UploadOutcome, UploadSession
from ..protocols import IUploadSessionClient
from ..utils.events import EventEmitter
from .registry import TaskRegistry

logger = logging.getLogger(__name__)


class RetryingUploader:
    """
    Uploads one file at a time through a resumable session, retrying forever.

    Events emitted on ``events``:
        task_update(Task)                   after every acknowledged range
        task_retry(FileDescriptor, exc)     before the backoff sleep
        task_done(FileDescriptor, item)     after a successful upload
        task_failed(FileDescriptor, exc)    after a permanent failure

    Errors carrying a provider ``code`` are permanent: the file is dropped
    from the registry and never retried. Anything else sleeps
    ``retry_delay`` and tries again with the retained session, so the
    transfer resumes from the last acknowledged byte.
    """

    def __init__(
        self,
        session_client: IUploadSessionClient,
        registry: TaskRegistry,
        config: Optional[UploadConfig] = None,
        events: Optional[EventEmitter] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = session_client
        self._registry = registry
        self._config = config or UploadConfig()
        self._events = events or EventEmitter()
        self._clock = clock
        # Sessions survive between attempts, never across processes
        self._sessions: Dict[str, UploadSession] = {}
        self._background: set = set()

    @property
    def events(self) -> EventEmitter:
        return self._events

    def session_for(self, file: FileDescriptor) -> Optional[UploadSession]:
        return self._sessions.get(self._key(file))

    @staticmethod
    def _key(file: FileDescriptor) -> str:
        return str(file.absolute_path)

    def upload_with_retry(
        self,
        file: FileDescriptor,
        destination_dir: str,
        on_done: Optional[Callable[[], None]] = None,
    ) -> asyncio.Task:
        """
        Fire-and-forget form of ``upload``.

        ``on_done`` runs only when the file was uploaded; a permanently
        failed file is abandoned silently.
        """
        async def _run():
            outcome = await self.upload(file, destination_dir)
            if outcome.success and on_done is not None:
                on_done()
            return outcome

        task = asyncio.create_task(_run())
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def upload(self, file: FileDescriptor, destination_dir: str) -> UploadOutcome:
        """Run the file's upload lifecycle until success or permanent failure."""
        self._registry.register(file.relative_path, file.size)
        attempt = 0

        while True:
            attempt += 1
            try:
                item = await self._attempt(file, destination_dir, attempt)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if is_permanent(exc):
                    logger.error(f"Permanent failure uploading {file.relative_path}: {exc}")
                    self._registry.remove(file.relative_path)
                    self._sessions.pop(self._key(file), None)
                    await self._events.emit("task_failed", file, exc)
                    return UploadOutcome.fail(file, str(exc))

                if isinstance(exc, SessionExpiredError):
                    self._sessions.pop(self._key(file), None)

                error_msg = str(exc) or type(exc).__name__
                logger.warning(
                    f"Attempt {attempt} for {file.relative_path} failed ({error_msg}), "
                    f"retrying in {self._config.retry_delay:g}s"
                )
                await self._events.emit("task_retry", file, exc)
                await asyncio.sleep(self._config.retry_delay)
                continue

            self._registry.remove(file.relative_path)
            self._sessions.pop(self._key(file), None)
            logger.info(f"Uploaded {file.relative_path} as {item.name} ({item.id})")
            await self._events.emit("task_done", file, item)
            return UploadOutcome.ok(file, item)

    async def _attempt(self, file: FileDescriptor, destination_dir: str, attempt: int):
        key = self._key(file)
        session = self._sessions.get(key)
        resume = session is not None

        if session is None:
            remote_path = file.remote_path(destination_dir)
            logger.debug(f"Creating upload session for {file.relative_path} -> {remote_path}")
            session = await self._client.create_session(remote_path)
            self._sessions[key] = session
        else:
            logger.info(f"Resuming {file.relative_path} (attempt {attempt})")

        last_tick = self._clock()
        speed = 0.0

        async def on_progress(min_value: int, max_value: int) -> None:
            nonlocal last_tick, speed
            now = self._clock()
            elapsed = now - last_tick
            last_tick = now
            if elapsed > 0:
                speed = (max_value - min_value) / elapsed
            task = self._registry.update(file.relative_path, file.size, speed, max_value)
            await self._events.emit("task_update", task)

        return await self._client.upload(file, session, on_progress, resume=resume)
