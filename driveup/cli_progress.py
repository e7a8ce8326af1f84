"""Console rendering and progress helpers for the driveup CLI."""
from __future__ import annotations

import asyncio
import logging
import math
import signal
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import Task
from .orchestrator.models import PoolResult
from .orchestrator.registry import TaskRegistry
from .utils.formatting import format_size

logger = logging.getLogger(__name__)

console = Console()

NAME_COLUMN_RESERVE = 40
MIN_NAME_WIDTH = 10
SIZE_WIDTH = 8
SPEED_WIDTH = 9


@dataclass
class DashboardState:
    """Aggregate counters shown above the task list."""
    pending: int = 0
    total: Optional[int] = None
    running: Optional[int] = None


def progress_percent(uploaded: int, size: int) -> float:
    """Percentage truncated to one decimal."""
    if size <= 0:
        return 100.0
    return math.floor(uploaded / size * 1000) / 10


def progress_gauge(percent: float) -> str:
    """
    20 character gauge: ``######[ 42.5%].......``.

    Every 5% lights a segment; the first six fill the left side, the
    right side starts filling past 65%.
    """
    steps = int(percent // 5)
    prefix = ("#" * min(steps, 6)).ljust(6, ".")
    suffix = ("#" * max(steps - 13, 0)).ljust(7, ".")
    return f"{prefix}[{percent:>4.1f}%]{suffix}"


class ProgressRenderer:
    """
    Builds the full-screen dashboard text.

    The name column is ``columns - 40`` wide; call ``on_resize`` when the
    terminal size changes.
    """

    def __init__(self, columns_provider: Optional[Callable[[], int]] = None):
        self._columns_provider = columns_provider or (lambda: console.size.width)
        self.columns = 0
        self.name_width = 0
        self.on_resize()

    def on_resize(self) -> None:
        self.columns = max(int(self._columns_provider()), 1)
        self.name_width = max(self.columns - NAME_COLUMN_RESERVE, MIN_NAME_WIDTH)

    def render_task(self, task: Task) -> str:
        name = task.filename.ljust(self.name_width)[: self.name_width]
        size = format_size(task.size).rjust(SIZE_WIDTH)[:SIZE_WIDTH]
        speed = f"{format_size(task.speed)}/s".rjust(SPEED_WIDTH)[:SPEED_WIDTH]
        gauge = progress_gauge(progress_percent(task.uploaded, task.size))
        return f"{name} {size} {speed} {gauge}"

    def render(self, state: DashboardState, tasks: Iterable[Task]) -> str:
        lines = []
        if state.total:
            lines.append(f"Total tasks: {state.total}")
        if state.running:
            lines.append(f"Running tasks: {state.running}")
        lines.append(f"Pending tasks: {state.pending}")
        lines.append("-" * self.columns)
        lines.append(f"{'Name'.ljust(self.name_width)}     Size     Speed Progress")
        lines.extend(self.render_task(task) for task in tasks)
        return "\n".join(lines) + "\n"


class UploadDashboard:
    """
    Live in-place dashboard for a running UploadProcess.

    Usage:
        dashboard = UploadDashboard(registry)
        dashboard.attach(process)
        dashboard.start()
        try:
            result = await process.wait()
        finally:
            dashboard.stop()
    """

    def __init__(
        self,
        registry: TaskRegistry,
        renderer: Optional[ProgressRenderer] = None,
        output: Optional[Console] = None,
    ):
        self._registry = registry
        self._console = output or console
        self._renderer = renderer or ProgressRenderer(lambda: self._console.size.width)
        self._process = None
        self._live: Optional[Live] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._resize_hooked = False

    @property
    def renderer(self) -> ProgressRenderer:
        return self._renderer

    def attach(self, process) -> None:
        self._process = process
        process.on_task_update(self.refresh)
        process.on_task_done(self.refresh)
        process.on_task_failed(self.refresh)
        process.on_task_retry(self.refresh)

    def state(self) -> DashboardState:
        if self._process is None:
            return DashboardState()
        return DashboardState(
            pending=self._process.pending,
            total=self._process.total,
            running=self._process.running,
        )

    def snapshot(self) -> str:
        return self._renderer.render(self.state(), self._registry.tasks())

    def start(self) -> None:
        if self._live is not None:
            return
        self._live = Live(
            Text(self.snapshot().rstrip("\n"), no_wrap=True, overflow="crop"),
            console=self._console,
            auto_refresh=False,
            vertical_overflow="visible",
        )
        self._live.start(refresh=True)
        self._hook_resize()

    def stop(self) -> None:
        self._unhook_resize()
        if self._live is None:
            return
        self.refresh()
        self._live.stop()
        self._live = None

    def refresh(self, *_args: Any) -> None:
        if self._live is None:
            return
        self._live.update(Text(self.snapshot().rstrip("\n"), no_wrap=True, overflow="crop"), refresh=True)

    def _on_resize(self) -> None:
        self._renderer.on_resize()
        self.refresh()

    def _hook_resize(self) -> None:
        sigwinch = getattr(signal, "SIGWINCH", None)
        if sigwinch is None:
            return
        try:
            self._loop = asyncio.get_running_loop()
            self._loop.add_signal_handler(sigwinch, self._on_resize)
            self._resize_hooked = True
        except (RuntimeError, NotImplementedError) as e:
            logger.debug(f"Terminal resize tracking unavailable: {e}")

    def _unhook_resize(self) -> None:
        if self._resize_hooked and self._loop is not None:
            self._loop.remove_signal_handler(signal.SIGWINCH)
        self._resize_hooked = False
        self._loop = None


def render_configuration_summary(config: Dict[str, Any]) -> None:
    """Render startup configuration summary."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else str(value)
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]driveup[/bold green]",
        subtitle="[dim]OneDrive uploader[/dim]",
        border_style="blue",
    )
    console.print(panel)


def render_result(result: PoolResult) -> None:
    """Print the end-of-run summary."""
    uploaded = len(result.uploaded)
    failed = len(result.failed)
    if result.cancelled:
        console.print(f"[yellow]Cancelled[/yellow] uploaded={uploaded} total={result.total_files} failed={failed}")
        return

    console.print(f"[bold]Finished[/bold] uploaded={uploaded} total={result.total_files} failed={failed}")
    for outcome in result.failed:
        console.print(f"[red]Failed:[/red] {outcome.file.relative_path} - {outcome.error}")
