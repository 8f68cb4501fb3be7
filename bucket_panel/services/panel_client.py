"""HTTP client for the panel API and direct-to-bucket uploads"""

import aiohttp
import asyncio
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Optional

from bucket_panel.config import settings
from bucket_panel.utils.logger import get_logger

logger = get_logger(__name__)

SIGN_FAILED_MESSAGE = "Falha ao preparar upload. Verifique as configurações."
EMPTY_SIGN_MESSAGE = "Não foi possível preparar os dados de upload. Tente novamente."
PUT_FAILED_MESSAGE = "Falha no upload para o bucket. Verifique as permissões de CORS."
CONNECTION_FAILED_MESSAGE = "Erro de conexão durante o upload para o bucket."

ProgressCallback = Callable[[int, int], Any]


class PanelClientError(Exception):
    """Raised when the panel or the bucket rejects a request"""

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        self.status = status
        super().__init__(message)


async def _error_message(response: aiohttp.ClientResponse, default: str) -> str:
    """Prefer the panel's ``{"message": ...}`` body, then raw text, then ``default``"""
    text = await response.text()
    if not text:
        return default
    if response.content_type == "application/json":
        try:
            payload = await response.json()
        except (aiohttp.ContentTypeError, ValueError):
            return text
        if isinstance(payload, dict) and payload.get("message"):
            return str(payload["message"])
    return text


class PanelClient:
    """
    Async client used by upload tooling.

    The session cookie set by ``login`` is kept in the client's cookie jar and
    sent on every panel request. Bucket PUTs go to the presigned URL without
    panel cookies.
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[int] = None,
        chunk_size: Optional[int] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or settings.panel_client_timeout
        self.chunk_size = chunk_size or settings.upload_chunk_size
        self._session: Optional[aiohttp.ClientSession] = None
        self._storage_session: Optional[aiohttp.ClientSession] = None

    async def initialize(self):
        if not self._session:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            # unsafe=True accepts cookies from IP hosts (e.g. 127.0.0.1)
            self._session = aiohttp.ClientSession(
                timeout=timeout, cookie_jar=aiohttp.CookieJar(unsafe=True)
            )
            self._storage_session = aiohttp.ClientSession(
                timeout=timeout, cookie_jar=aiohttp.DummyCookieJar()
            )

    async def close(self):
        """Close HTTP sessions"""
        for session in (self._session, self._storage_session):
            if session:
                await session.close()
        self._session = None
        self._storage_session = None

    async def __aenter__(self) -> "PanelClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        if not self._session:
            await self.initialize()
        return self._session

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Authenticate and keep the session cookie.

        Returns:
            Session user dict
        """
        session = await self._get_session()
        async with session.post(
            f"{self.base_url}/api/auth/login",
            json={"email": email, "password": password},
        ) as response:
            if response.status != 200:
                message = await _error_message(response, "Falha ao autenticar.")
                raise PanelClientError(message, response.status)
            payload = await response.json()
            logger.info(f"Logged in to panel as {email}")
            return payload.get("user") or {}

    async def request_upload(
        self,
        file_name: str,
        content_type: Optional[str],
        size: int,
        prefix: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Ask the panel for a presigned PUT URL.

        Returns:
            Dict with uploadUrl, key, expiresAt, headers, publicUrl, cdnUrl
        """
        body: Dict[str, Any] = {"fileName": file_name, "size": size}
        if content_type:
            body["contentType"] = content_type
        if prefix:
            body["prefix"] = prefix

        session = await self._get_session()
        async with session.post(f"{self.base_url}/api/files", json=body) as response:
            if response.status >= 400:
                message = await _error_message(response, SIGN_FAILED_MESSAGE)
                raise PanelClientError(message, response.status)

            try:
                payload = await response.json()
            except (aiohttp.ContentTypeError, ValueError):
                payload = None

            if not payload or not payload.get("uploadUrl"):
                raise PanelClientError(EMPTY_SIGN_MESSAGE, response.status)
            return payload

    async def _iter_chunks(
        self,
        path: Optional[Path],
        data: Optional[bytes],
        total: int,
        on_progress: Optional[ProgressCallback],
    ) -> AsyncIterator[bytes]:
        """Yield the file in chunks, reporting bytes sent after each one"""
        sent = 0

        if path is not None:
            with open(path, "rb") as f:
                while True:
                    chunk = f.read(self.chunk_size)
                    if not chunk:
                        break
                    sent += len(chunk)
                    if on_progress:
                        on_progress(sent, total)
                    yield chunk
                    await asyncio.sleep(0)
        else:
            payload = data or b""
            for start in range(0, len(payload), self.chunk_size):
                chunk = payload[start:start + self.chunk_size]
                sent += len(chunk)
                if on_progress:
                    on_progress(sent, total)
                yield chunk
                await asyncio.sleep(0)

    async def put_to_storage(
        self,
        upload_url: str,
        size: int,
        path: Optional[Path] = None,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> int:
        """
        PUT the bytes to a presigned URL, streaming in chunks.

        Returns:
            HTTP status of the bucket response (2xx/3xx)

        Raises:
            PanelClientError: Non-success status or connection failure
        """
        if not self._storage_session:
            await self.initialize()

        request_headers = {k: v for k, v in (headers or {}).items() if v}
        # Presigned PUTs reject chunked transfer encoding
        request_headers["Content-Length"] = str(size)

        try:
            async with self._storage_session.put(
                upload_url,
                data=self._iter_chunks(path, data, size, on_progress),
                headers=request_headers,
            ) as response:
                if 200 <= response.status < 400:
                    return response.status

                text = await response.text()
                logger.error(f"Bucket upload failed: {response.status} - {text[:200]}")
                raise PanelClientError(text or PUT_FAILED_MESSAGE, response.status)
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
            logger.error(f"Bucket upload connection error: {e}")
            raise PanelClientError(CONNECTION_FAILED_MESSAGE) from e

    async def list_files(self) -> Dict[str, Any]:
        session = await self._get_session()
        async with session.get(f"{self.base_url}/api/files") as response:
            if response.status >= 400:
                message = await _error_message(response, "Não foi possível listar os arquivos.")
                raise PanelClientError(message, response.status)
            return await response.json()
