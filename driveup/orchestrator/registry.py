"""In-memory registry of active upload tasks."""
from typing import Dict, Iterator, List, Optional

from ..models import Task


class TaskRegistry:
    """
    Active tasks keyed by file path, kept in registration order.

    Each key has a single writer (the uploader for that file); the
    dashboard only reads. ``uploaded`` is clamped to ``[0, size]`` and
    never moves backwards while the task is registered.
    """

    def __init__(self):
        self._tasks: Dict[str, Task] = {}

    def register(self, file_path: str, size: int) -> Task:
        """Insert a task if absent and return it."""
        task = self._tasks.get(file_path)
        if task is None:
            task = Task(file_path=file_path, size=size)
            self._tasks[file_path] = task
        return task

    def update(self, file_path: str, size: int, speed: float, uploaded: int) -> Task:
        """Update (or insert) the task for ``file_path``."""
        task = self.register(file_path, size)
        task.size = size
        task.speed = max(speed, 0.0)
        bounded = min(max(uploaded, 0), size)
        if bounded > task.uploaded:
            task.uploaded = bounded
        return task

    def remove(self, file_path: str) -> Optional[Task]:
        return self._tasks.pop(file_path, None)

    def get(self, file_path: str) -> Optional[Task]:
        return self._tasks.get(file_path)

    def tasks(self) -> List[Task]:
        """Snapshot of active tasks in registration order."""
        return list(self._tasks.values())

    @property
    def total_uploaded(self) -> int:
        return sum(task.uploaded for task in self._tasks.values())

    def __contains__(self, file_path: str) -> bool:
        return file_path in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self.tasks())
