"""Tests for UploadOrchestrator wiring."""
from pathlib import Path

import pytest

from driveup.config import Credentials
from driveup.models import MiB, UploadConfig, UploadedItem, UploadSession
from driveup.orchestrator import UploadOrchestrator


class InstantSessionClient:
    def __init__(self):
        self.remote_paths = []

    async def create_session(self, remote_path):
        self.remote_paths.append(remote_path)
        return UploadSession(upload_url=f"https://upload.test{remote_path}")

    async def upload(self, file, session, progress_callback=None, resume=False):
        await progress_callback(0, file.size)
        return UploadedItem(id=file.name, name=file.name, size=file.size)


def _make(path, size):
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size)


class TestUploadOrchestrator:
    def test_requires_credentials_or_client(self):
        with pytest.raises(ValueError):
            UploadOrchestrator()

    @pytest.mark.asyncio
    async def test_folder_upload(self, tmp_path):
        folder = tmp_path / "shows"
        _make(folder / "s1" / "e1.mkv", 11 * MiB)
        _make(folder / "e0.mp4", 12 * MiB)
        _make(folder / "tiny.mp4", MiB)
        client = InstantSessionClient()

        async with UploadOrchestrator(session_client=client, config=UploadConfig(max_concurrent=2)) as orchestrator:
            process = orchestrator.upload(folder, "Videos")
            result = await process.wait()
            assert len(orchestrator.registry) == 0

        assert result.all_success is True
        assert result.total_files == 2
        assert sorted(client.remote_paths) == ["/Videos/shows/e0.mp4", "/Videos/shows/s1/e1.mkv"]

    @pytest.mark.asyncio
    async def test_single_file_upload(self, tmp_path):
        path = tmp_path / "clip.mov"
        _make(path, 100)
        client = InstantSessionClient()

        async with UploadOrchestrator(session_client=client) as orchestrator:
            result = await orchestrator.upload(path, "/Inbox").wait()

        assert result.all_success is True
        assert client.remote_paths == ["/Inbox/clip.mov"]

    @pytest.mark.asyncio
    async def test_builds_graph_client_from_credentials(self):
        credentials = Credentials("tenant", "client", "secret", "user")
        async with UploadOrchestrator(credentials) as orchestrator:
            assert orchestrator.config.max_concurrent == 5
            assert orchestrator._session_client.session_endpoint("/a b.mp4") == (
                "/users/user/drive/items/root:/a%20b.mp4:/createUploadSession"
            )

    def test_upload_outside_context_fails(self, tmp_path):
        orchestrator = UploadOrchestrator(session_client=InstantSessionClient())
        with pytest.raises(AssertionError):
            orchestrator.upload_files([], "/x")
