"""Bounded worker pool that keeps a fixed number of uploads in flight."""
import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from ..models import FileDescriptor, Task, UploadOutcome, UploadStatus
from ..utils.events import EventEmitter
from .models import PoolResult, PoolState, ProcessState
from .retrying import RetryingUploader

logger = logging.getLogger(__name__)


class UploadProcess:
    """
    Handle for a scheduled batch of uploads.

    Usage:
        process = pool.schedule(files, "/Videos", max_concurrent=5)
        process.on_task_update(lambda task: print(task.uploaded))
        process.on_task_failed(lambda file, exc: print(f"Failed: {file}"))
        result = await process.wait()
    """

    def __init__(self, state: PoolState, events: EventEmitter, max_concurrent: int):
        self._state = state
        self._events = events
        self._max_concurrent = max_concurrent
        self._process_state = ProcessState.PENDING
        self._workers: List[asyncio.Task] = []
        self._uploaded: List[UploadOutcome] = []
        self._failed: List[UploadOutcome] = []
        self._done = asyncio.Event()
        self._finish_emitted = False

    # Event subscription methods
    def on_task_update(self, callback: Callable[[Task], None]):
        """Called after every acknowledged byte range. Receives Task."""
        self._events.on("task_update", callback)

    def on_task_done(self, callback: Callable):
        """Called when a file is uploaded. Receives (FileDescriptor, UploadedItem)."""
        self._events.on("task_done", callback)

    def on_task_failed(self, callback: Callable):
        """Called when a file is abandoned. Receives (FileDescriptor, Exception)."""
        self._events.on("task_failed", callback)

    def on_task_retry(self, callback: Callable):
        """Called before a transient failure is retried. Receives (FileDescriptor, Exception)."""
        self._events.on("task_retry", callback)

    def on_finish(self, callback: Callable[[PoolResult], None]):
        """Called once the queue is drained. Receives PoolResult."""
        self._events.on("finish", callback)

    # State properties
    @property
    def state(self) -> ProcessState:
        return self._process_state

    @property
    def total(self) -> int:
        return self._state.total_files

    @property
    def running(self) -> int:
        return self._state.active_count

    @property
    def pending(self) -> int:
        return len(self._state.pending)

    @property
    def max_concurrent(self) -> int:
        return self._max_concurrent

    @property
    def is_done(self) -> bool:
        return self._done.is_set()

    async def wait(self) -> PoolResult:
        """Wait until the queue is empty and no upload is active."""
        await self._done.wait()
        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)
        if not self._finish_emitted:
            self._finish_emitted = True
            await self._events.emit("finish", self._build_result())
        return self._build_result()

    async def cancel(self) -> None:
        """Cancel every worker; used on shutdown only."""
        if self._process_state in (ProcessState.COMPLETED, ProcessState.CANCELLED):
            return
        self._process_state = ProcessState.CANCELLED
        for worker in self._workers:
            if not worker.done():
                worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._done.set()

    def _record(self, outcome: UploadOutcome) -> None:
        if outcome.success:
            self._uploaded.append(outcome)
        elif outcome.status == UploadStatus.FAILED:
            self._failed.append(outcome)

    def _mark_running(self, workers: List[asyncio.Task]) -> None:
        self._workers = workers
        self._process_state = ProcessState.RUNNING
        if not workers:
            self._finish()

    def _finish(self) -> None:
        if self._process_state != ProcessState.CANCELLED:
            self._process_state = ProcessState.COMPLETED
        self._done.set()

    def _build_result(self) -> PoolResult:
        return PoolResult(
            total_files=self._state.total_files,
            uploaded=list(self._uploaded),
            failed=list(self._failed),
            cancelled=self._process_state == ProcessState.CANCELLED,
        )


class WorkerPool:
    """
    Keeps up to ``max_concurrent`` files uploading until the queue drains.

    The first ``max_concurrent`` files start immediately, the rest wait in
    a FIFO queue. Each worker slot uploads its file and then pulls the
    next pending one, so a freed slot is refilled at once. A permanently
    failed file frees its slot like a finished one.
    """

    def __init__(self, uploader: RetryingUploader):
        self._uploader = uploader

    @property
    def events(self) -> EventEmitter:
        return self._uploader.events

    def schedule(
        self,
        files: Sequence[FileDescriptor],
        destination_dir: str,
        max_concurrent: int,
    ) -> UploadProcess:
        """Start uploading ``files`` and return the process handle."""
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be at least 1, got {max_concurrent}")

        files = list(files)
        state = PoolState(total_files=len(files))
        state.pending.extend(files[max_concurrent:])
        process = UploadProcess(state, self.events, max_concurrent)

        initial = files[:max_concurrent]
        state.active_count = len(initial)
        logger.info(
            f"Scheduling {len(files)} files: {len(initial)} active, "
            f"{len(state.pending)} pending (max {max_concurrent})"
        )

        workers = [
            asyncio.create_task(self._worker(first, destination_dir, state, process))
            for first in initial
        ]
        process._mark_running(workers)
        return process

    async def _worker(
        self,
        first: FileDescriptor,
        destination_dir: str,
        state: PoolState,
        process: UploadProcess,
    ) -> None:
        current: Optional[FileDescriptor] = first
        try:
            while current is not None:
                try:
                    outcome = await self._uploader.upload(current, destination_dir)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    # Listener or bookkeeping bug; keep the slot alive
                    logger.exception(f"Unexpected error uploading {current.relative_path}")
                    outcome = UploadOutcome.fail(current, str(exc) or type(exc).__name__)
                process._record(outcome)

                # Hand the slot straight to the next file so the count never dips
                if state.pending:
                    current = state.pending.popleft()
                    logger.debug(
                        f"Dequeued {current.relative_path} ({len(state.pending)} still pending)"
                    )
                else:
                    current = None
                    state.active_count -= 1
        except asyncio.CancelledError:
            state.active_count -= 1
            raise
        finally:
            if state.drained:
                process._finish()
