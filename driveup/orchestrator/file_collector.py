"""File collection for single-file and folder uploads."""
import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

from ..models import FileDescriptor, UploadConfig

logger = logging.getLogger(__name__)


class FileCollector:
    """Collects upload candidates from a file or a folder tree."""

    def __init__(self, config: Optional[UploadConfig] = None):
        self._config = config or UploadConfig()

    def collect(self, path: Path) -> Tuple[Path, List[FileDescriptor]]:
        """
        Collect files to upload.

        A single file is always taken as is. A folder is walked depth-first
        in name order and filtered by extension and minimum size; relative
        paths keep the folder's own name as their first component.

        Args:
            path: File or folder to upload

        Returns:
            (root, files) where every descriptor's relative path is
            relative to ``root``
        """
        path = Path(path).resolve()
        root = path.parent

        if path.is_file():
            return root, [FileDescriptor(path.name, path, path.stat().st_size)]

        if path.is_dir():
            files = []
            skipped = 0
            for file_path, size in self._walk(path):
                relative = file_path.relative_to(root).as_posix()
                if self._config.accepts(file_path.name, size):
                    files.append(FileDescriptor(relative, file_path, size))
                else:
                    skipped += 1
            logger.info(f"Collected {len(files)} files from {path} ({skipped} filtered out)")
            return root, files

        return root, []

    def _walk(self, folder: Path):
        try:
            entries = sorted(os.scandir(folder), key=lambda entry: entry.name)
        except OSError as e:
            logger.warning(f"Cannot list {folder}: {e}")
            return

        for entry in entries:
            entry_path = Path(entry.path)
            if entry.is_dir(follow_symlinks=False):
                yield from self._walk(entry_path)
            elif entry.is_file():
                yield entry_path, entry.stat().st_size
