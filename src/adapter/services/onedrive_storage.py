"""OneDrive Storage Adapter

RemoteStorage implementation over the Microsoft Graph drive API using httpx.
Small files go up in a single PUT, larger ones through a resumable upload
session in fixed-size chunks.
"""
import asyncio
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote
import httpx
from src.app.services.remote_storage import (
    RemoteItem,
    RemoteListing,
    RemoteStorage,
    RemoteStorageError,
)

logger = logging.getLogger(__name__)

SIMPLE_UPLOAD_LIMIT = 4 * 1024 * 1024
UPLOAD_CHUNK_SIZE = 5 * 1024 * 1024
LIST_PAGE_SIZE = 50


def _to_remote_item(data: Dict[str, Any]) -> RemoteItem:
    return RemoteItem(
        id=data["id"],
        name=data.get("name", ""),
        is_folder="folder" in data,
        size=data.get("size"),
        mime_type=(data.get("file") or {}).get("mimeType"),
    )


class OneDriveStorage(RemoteStorage):
    """
    Microsoft Graph implementation of RemoteStorage.

    Features:
    - Exponential backoff retry on transport errors: 1s, 2s, 4s
    - Non-2xx responses mapped to RemoteStorageError with the status code
    - Folder creation renames on name conflicts
    """

    def __init__(
        self,
        graph_url: str = "https://graph.microsoft.com/v1.0",
        timeout: float = 60.0,
        max_retries: int = 3,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.graph_url = graph_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def _retry_request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Execute HTTP request with exponential backoff retry"""
        for attempt in range(self.max_retries):
            try:
                return await self.client.request(method, url, **kwargs)
            except (httpx.TimeoutException, httpx.ConnectError, httpx.ReadError) as e:
                if attempt < self.max_retries - 1:
                    delay = 2 ** attempt
                    logger.warning(
                        f"OneDrive request failed (attempt {attempt + 1}/{self.max_retries}), "
                        f"retrying in {delay}s: {e}"
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(f"OneDrive request failed after {self.max_retries} attempts: {e}")

        raise RemoteStorageError(f"OneDrive unavailable after {self.max_retries} attempts")

    @staticmethod
    def _auth(access_token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.status_code >= 400:
            raise RemoteStorageError(
                f"OneDrive {action} failed ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )

    def _item_path(self, parent_id: Optional[str], name: str) -> str:
        encoded = quote(name, safe="")
        if parent_id:
            return f"{self.graph_url}/me/drive/items/{parent_id}:/{encoded}:"
        return f"{self.graph_url}/me/drive/root:/{encoded}:"

    def _children_url(self, parent_id: Optional[str]) -> str:
        if parent_id:
            return f"{self.graph_url}/me/drive/items/{parent_id}/children"
        return f"{self.graph_url}/me/drive/root/children"

    async def list_files(
        self, access_token: str, parent_id: Optional[str] = None, next_link: Optional[str] = None
    ) -> RemoteListing:
        if next_link:
            response = await self._retry_request("GET", next_link, headers=self._auth(access_token))
        else:
            response = await self._retry_request(
                "GET",
                self._children_url(parent_id),
                params={"$top": LIST_PAGE_SIZE, "$orderby": "name"},
                headers=self._auth(access_token),
            )
        self._raise_for_status(response, "list files")

        data = response.json()
        return RemoteListing(
            items=[_to_remote_item(item) for item in data.get("value", [])],
            next_link=data.get("@odata.nextLink"),
        )

    async def create_folder(
        self, access_token: str, name: str, parent_id: Optional[str] = None
    ) -> str:
        response = await self._retry_request(
            "POST",
            self._children_url(parent_id),
            json={"name": name, "folder": {}, "@microsoft.graph.conflictBehavior": "rename"},
            headers=self._auth(access_token),
        )
        self._raise_for_status(response, "create folder")
        return response.json()["id"]

    async def upload_file(
        self,
        access_token: str,
        name: str,
        mime_type: str,
        content: bytes,
        parent_id: Optional[str] = None,
    ) -> RemoteItem:
        if len(content) <= SIMPLE_UPLOAD_LIMIT:
            return await self._simple_upload(access_token, name, mime_type, content, parent_id)
        # Upload sessions take no content type; OneDrive derives it from the file extension
        return await self._session_upload(access_token, name, content, parent_id)

    async def _simple_upload(
        self, access_token: str, name: str, mime_type: str, content: bytes, parent_id: Optional[str]
    ) -> RemoteItem:
        headers = self._auth(access_token)
        headers["Content-Type"] = mime_type or "application/octet-stream"
        response = await self._retry_request(
            "PUT", f"{self._item_path(parent_id, name)}/content", content=content, headers=headers
        )
        self._raise_for_status(response, "upload")
        return _to_remote_item(response.json())

    async def _session_upload(
        self, access_token: str, name: str, content: bytes, parent_id: Optional[str]
    ) -> RemoteItem:
        response = await self._retry_request(
            "POST",
            f"{self._item_path(parent_id, name)}/createUploadSession",
            json={"item": {"@microsoft.graph.conflictBehavior": "rename", "name": name}},
            headers=self._auth(access_token),
        )
        self._raise_for_status(response, "create upload session")
        upload_url = response.json()["uploadUrl"]

        total = len(content)
        offset = 0
        while offset < total:
            end = min(offset + UPLOAD_CHUNK_SIZE, total)
            chunk = content[offset:end]
            # The upload URL is pre-authenticated
            response = await self._retry_request(
                "PUT",
                upload_url,
                content=chunk,
                headers={
                    "Content-Length": str(len(chunk)),
                    "Content-Range": f"bytes {offset}-{end - 1}/{total}",
                },
            )
            if response.status_code in (200, 201):
                logger.info(f"[OneDrive] Uploaded {name} ({total} bytes) in chunks")
                return _to_remote_item(response.json())
            if response.status_code != 202:
                self._raise_for_status(response, "chunk upload")
                raise RemoteStorageError(
                    f"OneDrive chunk upload returned unexpected status {response.status_code}",
                    status_code=response.status_code,
                )
            offset = end

        raise RemoteStorageError("OneDrive upload completed without returning item metadata")

    async def close(self):
        """Close the HTTP client connection"""
        await self.client.aclose()
