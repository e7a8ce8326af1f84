"""
Microsoft Graph resumable upload sessions.

Flow:
1. POST .../root:/{path}:/createUploadSession -> uploadUrl
2. PUT fixed-size byte ranges to uploadUrl (no Authorization header)
3. 202 responses carry nextExpectedRanges, the final 200/201 the driveItem
4. To resume, GET uploadUrl and continue from nextExpectedRanges
"""
import asyncio
import inspect
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import httpx

from ..errors import ProviderError, SessionExpiredError, TransientUploadError
from ..models import FileDescriptor, UploadConfig, UploadSession, UploadedItem
from ..protocols import ProgressCallback
from .api_client import GraphAPIClient, raise_for_graph_error

logger = logging.getLogger(__name__)


def _read_chunk(path: Path, offset: int, length: int) -> bytes:
    with open(path, "rb") as f:
        f.seek(offset)
        return f.read(length)


def _first_offset(ranges) -> Optional[int]:
    if not ranges:
        return None
    start = str(ranges[0]).split("-", 1)[0]
    return int(start) if start else None


class GraphUploadSessionClient:
    """
    Resumable upload primitive backed by Graph upload sessions.

    Implements IUploadSessionClient.
    """

    def __init__(
        self,
        api_client: GraphAPIClient,
        user_id: str,
        config: Optional[UploadConfig] = None,
        transfer_client: Optional[httpx.AsyncClient] = None,
    ):
        self._api = api_client
        self._user_id = user_id
        self._config = config or UploadConfig()
        # uploadUrl is pre-authenticated; sending a bearer token is rejected
        self._transfer = transfer_client or httpx.AsyncClient(timeout=120)

    async def aclose(self) -> None:
        await self._transfer.aclose()

    def session_endpoint(self, remote_path: str) -> str:
        encoded = quote("/" + remote_path.lstrip("/"))
        return f"/users/{self._user_id}/drive/items/root:{encoded}:/createUploadSession"

    async def create_session(self, remote_path: str) -> UploadSession:
        """Open a resumable upload session for ``remote_path``."""
        name = remote_path.rstrip("/").rsplit("/", 1)[-1]
        payload = {
            "item": {
                "@microsoft.graph.conflictBehavior": self._config.conflict_behavior,
                "name": name,
            }
        }
        response = await self._api.post(self.session_endpoint(remote_path), json=payload)
        data = response.json()
        return UploadSession(
            upload_url=data["uploadUrl"],
            expiration=data.get("expirationDateTime"),
            next_expected_ranges=tuple(data.get("nextExpectedRanges") or ()),
        )

    async def session_status(self, session: UploadSession) -> UploadSession:
        """Ask Graph which ranges it still expects for ``session``."""
        response = await self._transfer.get(session.upload_url)
        raise_for_graph_error(response, resuming=True)
        data = response.json()
        return UploadSession(
            upload_url=session.upload_url,
            expiration=data.get("expirationDateTime", session.expiration),
            next_expected_ranges=tuple(data.get("nextExpectedRanges") or ()),
        )

    async def upload(
        self,
        file: FileDescriptor,
        session: UploadSession,
        progress_callback: Optional[ProgressCallback] = None,
        resume: bool = False,
    ) -> UploadedItem:
        """
        Send ``file`` through ``session`` in ``chunk_size`` ranges.

        Args:
            file: File to send
            session: Session from ``create_session``
            progress_callback: Called with (min_value, max_value) per acknowledged range
            resume: Query the session first and skip acknowledged bytes

        Returns:
            Metadata of the created driveItem
        """
        total = file.size
        if total <= 0:
            raise ProviderError("emptyFile", f"{file.relative_path} is empty", status=None)

        offset = 0
        if resume:
            status = await self.session_status(session)
            if not status.next_expected_ranges:
                # Every byte received but nothing committed; the session is unusable
                raise SessionExpiredError(
                    f"session for {file.relative_path} expects no more bytes",
                    status=None,
                )
            offset = status.next_offset
            logger.debug(f"Session for {file.relative_path} expects byte {offset} of {total}")

        chunk_size = self._config.chunk_size
        while True:
            if offset >= total:
                raise TransientUploadError(
                    f"all {total} bytes of {file.relative_path} sent but upload not completed"
                )

            length = min(chunk_size, total - offset)
            data = await asyncio.to_thread(_read_chunk, file.absolute_path, offset, length)
            end = offset + len(data) - 1
            headers = {
                "Content-Length": str(len(data)),
                "Content-Range": f"bytes {offset}-{end}/{total}",
            }
            response = await self._transfer.put(session.upload_url, content=data, headers=headers)

            if response.status_code in (200, 201):
                await self._report(progress_callback, offset, total)
                return UploadedItem.from_drive_item(response.json())

            if response.status_code == 202:
                acknowledged = _first_offset(response.json().get("nextExpectedRanges"))
                if acknowledged is None:
                    acknowledged = end + 1
                await self._report(progress_callback, offset, acknowledged)
                offset = acknowledged
                continue

            raise_for_graph_error(response)
            raise TransientUploadError(
                f"unexpected status {response.status_code} uploading {file.relative_path}",
                status=response.status_code,
            )

    @staticmethod
    async def _report(callback: Optional[ProgressCallback], min_value: int, max_value: int) -> None:
        if callback is None:
            return
        result = callback(min_value, max_value)
        if inspect.isawaitable(result):
            await result
