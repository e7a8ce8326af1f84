"""Tests for the dashboard renderer."""
import io
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from driveup.cli_progress import (
    DashboardState,
    ProgressRenderer,
    UploadDashboard,
    progress_gauge,
    progress_percent,
)
from driveup.models import Task
from driveup.orchestrator.registry import TaskRegistry


class TestGauge:
    def test_percent_truncates_to_one_decimal(self):
        assert progress_percent(1, 3) == 33.3
        assert progress_percent(2, 3) == 66.6
        assert progress_percent(0, 10) == 0.0
        assert progress_percent(10, 10) == 100.0

    def test_percent_empty_file_is_complete(self):
        assert progress_percent(0, 0) == 100.0

    @pytest.mark.parametrize(
        "percent, expected",
        [
            (0.0, "......[ 0.0%]......."),
            (12.0, "##....[12.0%]......."),
            (50.0, "######[50.0%]......."),
            (70.0, "######[70.0%]#......"),
            (100.0, "######[100.0%]#######"),
        ],
    )
    def test_gauge(self, percent, expected):
        assert progress_gauge(percent) == expected

    def test_gauge_is_monotonic(self):
        filled = [progress_gauge(p / 10).count("#") for p in range(0, 1001)]
        assert filled == sorted(filled)
        assert filled[-1] == 13


class TestProgressRenderer:
    @pytest.fixture
    def renderer(self):
        return ProgressRenderer(lambda: 60)

    def test_name_width_follows_terminal(self, renderer):
        assert renderer.columns == 60
        assert renderer.name_width == 20

    def test_name_width_has_minimum(self):
        assert ProgressRenderer(lambda: 30).name_width == 10

    def test_on_resize_recomputes_width(self):
        columns = [80]
        renderer = ProgressRenderer(lambda: columns[0])
        assert renderer.name_width == 40
        columns[0] = 100
        renderer.on_resize()
        assert renderer.name_width == 60
        assert renderer.columns == 100

    def test_render_task(self, renderer):
        task = Task("dir/movie.mp4", size=1572864, speed=2048, uploaded=786432)
        line = renderer.render_task(task)
        assert line == (
            "dir/movie.mp4       " + " " + "   1.5MB" + " " + "    2KB/s" + " " + "######[50.0%]......."
        )

    def test_render_task_truncates_long_names(self, renderer):
        task = Task("a" * 50 + ".mp4", size=100, uploaded=0)
        line = renderer.render_task(task)
        assert line.startswith("a" * 20 + " ")

    def test_render(self, renderer):
        tasks = [
            Task("a.mp4", size=100, speed=0, uploaded=100),
            Task("b.mp4", size=100, speed=0, uploaded=0),
        ]
        text = renderer.render(DashboardState(pending=2, total=7, running=5), tasks)
        lines = text.splitlines()
        assert lines[0] == "Total tasks: 7"
        assert lines[1] == "Running tasks: 5"
        assert lines[2] == "Pending tasks: 2"
        assert lines[3] == "-" * 60
        assert lines[4] == "Name".ljust(20) + "     Size     Speed Progress"
        assert lines[5].startswith("a.mp4")
        assert lines[6].startswith("b.mp4")
        assert text.endswith("\n")

    def test_render_omits_empty_counters(self, renderer):
        text = renderer.render(DashboardState(pending=0, total=None, running=0), [])
        lines = text.splitlines()
        assert lines[0] == "Pending tasks: 0"
        assert len(lines) == 3


class TestUploadDashboard:
    def _process(self, pending=1, total=3, running=2):
        process = MagicMock()
        process.pending = pending
        process.total = total
        process.running = running
        return process

    def test_attach_subscribes_to_events(self):
        dashboard = UploadDashboard(TaskRegistry(), renderer=ProgressRenderer(lambda: 80))
        process = self._process()
        dashboard.attach(process)
        process.on_task_update.assert_called_once_with(dashboard.refresh)
        process.on_task_done.assert_called_once_with(dashboard.refresh)
        process.on_task_failed.assert_called_once_with(dashboard.refresh)

    def test_snapshot_uses_process_counters(self):
        registry = TaskRegistry()
        registry.update("clip.mp4", 100, 0, 25)
        dashboard = UploadDashboard(registry, renderer=ProgressRenderer(lambda: 80))
        dashboard.attach(self._process())
        snapshot = dashboard.snapshot()
        assert "Total tasks: 3" in snapshot
        assert "Running tasks: 2" in snapshot
        assert "Pending tasks: 1" in snapshot
        assert "[25.0%]" in snapshot

    def test_live_redraw_writes_to_console(self):
        buffer = io.StringIO()
        output = Console(file=buffer, width=80, force_terminal=False)
        registry = TaskRegistry()
        dashboard = UploadDashboard(registry, renderer=ProgressRenderer(lambda: 80), output=output)
        dashboard.attach(self._process())
        dashboard.start()
        registry.update("clip.mp4", 100, 0, 100)
        dashboard.refresh()
        dashboard.stop()
        assert "clip.mp4" in buffer.getvalue()
        assert "[100.0%]" in buffer.getvalue()

    def test_refresh_before_start_is_noop(self):
        dashboard = UploadDashboard(TaskRegistry(), renderer=ProgressRenderer(lambda: 80))
        dashboard.refresh()
