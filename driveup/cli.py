"""Command line interface for driveup."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence, Tuple

from rich.logging import RichHandler

from .cli_progress import (
    UploadDashboard,
    console,
    render_configuration_summary,
    render_result,
)
from .config import Credentials, load_env_file, resolve_env_file
from .errors import CLIError, ConfigError, DriveUpError
from .models import UploadConfig
from .orchestrator import UploadOrchestrator
from .utils.formatting import format_size

logger = logging.getLogger(__name__)

USAGE = "driveup <filename or directory> <upload directory>"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_log_paths: Tuple[Optional[str], Optional[str]] = (None, None)


def _get_log_paths() -> Tuple[Optional[str], Optional[str]]:
    """(run log, error log) written by the last ``_setup_logging`` call."""
    return _log_paths


def _setup_logging() -> str:
    """
    Configure logging.

    Files under $DRIVEUP_LOG_DIR (default ./logs) always receive INFO and
    errors. The console only shows log records when LOG_LEVEL is set,
    since the live dashboard owns the terminal otherwise.
    Returns a string describing effective mode.
    """
    global _log_paths

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    env_level = os.getenv("LOG_LEVEL")
    level = getattr(logging, (env_level or "INFO").upper(), logging.INFO)

    log_dir = Path(os.getenv("DRIVEUP_LOG_DIR", "logs")).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    run_log = log_dir / "driveup.log"
    error_log = log_dir / "driveup-error.log"

    run_handler = logging.FileHandler(run_log, encoding="utf-8")
    run_handler.setLevel(level)
    run_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(run_handler)

    error_handler = logging.FileHandler(error_log, encoding="utf-8")
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(error_handler)

    root_logger.setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    _log_paths = (str(run_log), str(error_log))

    if not env_level:
        return "file"

    rich_handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
    )
    rich_handler.setLevel(level)
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(rich_handler)
    return logging.getLevelName(level)


async def _run_upload(
    source: Path,
    dest: str,
    credentials: Credentials,
    config: UploadConfig,
) -> int:
    if not (source.is_file() or source.is_dir()):
        raise CLIError(f"source is neither file nor directory: {source}")

    async with UploadOrchestrator(credentials, config=config) as orchestrator:
        _, files = orchestrator.collect(source)
        if not files:
            console.print(f"Nothing to upload in {source}")
            return 0

        total_bytes = sum(f.size for f in files)
        logger.info(f"Uploading {len(files)} files ({format_size(total_bytes)}) to {dest}")

        process = orchestrator.upload_files(files, dest)
        dashboard = UploadDashboard(orchestrator.registry)
        dashboard.attach(process)
        dashboard.start()
        try:
            result = await process.wait()
        except asyncio.CancelledError:
            await process.cancel()
            raise
        finally:
            dashboard.stop()

        render_result(result)
        return 0 if result.success else 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="driveup",
        usage=USAGE,
        add_help=False,
        description="Upload a file or a folder of videos to OneDrive through resumable upload sessions.",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        metavar="PATH",
        help="Source file or folder, then the destination folder in OneDrive",
    )
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args, extra = parser.parse_known_args(argv)

    if extra or len(args.paths) != 2:
        print(f"Usage: {USAGE}", file=sys.stderr)
        return 1

    raw_source, dest = args.paths
    source = Path(raw_source).expanduser().resolve()
    if not source.exists():
        print(f"ERROR: File or directory not found: {raw_source}", file=sys.stderr)
        return 1

    env_file = resolve_env_file()
    try:
        if env_file is not None:
            load_env_file(env_file)
        credentials = Credentials.from_env()
        config = UploadConfig.from_env()
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    effective_log_mode = _setup_logging()
    run_log, _ = _get_log_paths()

    render_configuration_summary(
        {
            "Source": str(source),
            "Source Type": "file" if source.is_file() else "folder",
            "Dest": dest,
            "User": credentials.user_id,
            "Parallel": config.max_concurrent,
            "Chunk Size": format_size(config.chunk_size),
            "Env File": str(env_file) if env_file else "-",
            "Logging": f"{effective_log_mode} ({run_log})",
        }
    )

    try:
        return asyncio.run(_run_upload(source, dest, credentials, config))
    except DriveUpError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
