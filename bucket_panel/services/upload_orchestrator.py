"""
Upload orchestrator - client-side queue for direct-to-bucket uploads.

Each file becomes a queue item. Items whose size reaches the threshold of
their category wait for an explicit confirmation; the rest start right away.
A started item asks the panel for a presigned URL, streams its bytes to the
bucket and ends in ``success`` or ``error``. Failed items are never retried.
"""

import asyncio
import inspect
import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional
from uuid import uuid4

from bucket_panel.config import settings
from bucket_panel.services.panel_client import PanelClient, PanelClientError
from bucket_panel.utils.file_types import CATEGORY_LABELS, classify_file, format_bytes
from bucket_panel.utils.logger import get_logger

logger = get_logger(__name__)

UNEXPECTED_ERROR_MESSAGE = "Ocorreu um erro inesperado ao enviar o arquivo."


class UploadState(str, Enum):
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class LocalFile:
    """A file selected for upload, backed by a path or by in-memory bytes"""
    name: str
    size: int
    content_type: Optional[str] = None
    path: Optional[Path] = None
    data: Optional[bytes] = None

    @classmethod
    def from_path(cls, path, content_type: Optional[str] = None) -> "LocalFile":
        path = Path(path)
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            size=path.stat().st_size,
            content_type=content_type or guessed,
            path=path,
        )

    @classmethod
    def from_bytes(cls, name: str, data: bytes, content_type: Optional[str] = None) -> "LocalFile":
        guessed, _ = mimetypes.guess_type(name)
        return cls(name=name, size=len(data), content_type=content_type or guessed, data=data)


@dataclass
class ConfirmationCheck:
    required: bool
    category: str
    message: Optional[str] = None


@dataclass
class UploadItem:
    """Queue entry tracking one file through its upload lifecycle"""
    id: str
    file_name: str
    size: int
    status: UploadState
    progress: float = 0.0
    mime_type: Optional[str] = None
    target_prefix: Optional[str] = None
    error: Optional[str] = None
    requires_confirmation: bool = False
    confirmation_message: Optional[str] = None
    preview_path: Optional[str] = None
    key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "fileName": self.file_name,
            "size": self.size,
            "status": self.status.value,
            "progress": self.progress,
            "mimeType": self.mime_type,
            "targetPrefix": self.target_prefix,
            "error": self.error,
            "requiresConfirmation": self.requires_confirmation,
            "confirmationMessage": self.confirmation_message,
            "previewPath": self.preview_path,
            "key": self.key,
        }


def check_upload_confirmation(
    file_name: str,
    size: int,
    thresholds: Optional[Dict[str, int]] = None,
) -> ConfirmationCheck:
    """
    Decide whether a file needs explicit confirmation before uploading.

    Example:
        >>> check_upload_confirmation("clip.mp4", 250 * 1024 * 1024).message
        'Este vídeo possui 250 MB e ultrapassa o limite de upload automático (200 MB). Confirme para iniciar o envio.'
    """
    thresholds = thresholds or settings.upload_thresholds()
    category = classify_file(file_name)
    threshold = thresholds.get(category, thresholds.get("other"))

    if threshold is None or size < threshold:
        return ConfirmationCheck(required=False, category=category)

    label = CATEGORY_LABELS.get(category, "arquivo")
    message = (
        f"Este {label} possui {format_bytes(size)} e ultrapassa o limite de upload "
        f"automático ({format_bytes(threshold)}). Confirme para iniciar o envio."
    )
    return ConfirmationCheck(required=True, category=category, message=message)


@dataclass
class _PendingUpload:
    file: LocalFile
    prefix: Optional[str] = None
    on_success: Optional[Callable[[UploadItem], Any]] = None
    on_error: Optional[Callable[[UploadItem, str], Any]] = None


async def _maybe_await(result: Any):
    if inspect.isawaitable(result):
        await result


class UploadManager:
    """
    Upload queue bound to a ``PanelClient``.

    ``enqueue`` and ``confirm`` schedule transfers on the running event loop;
    ``wait`` blocks until every scheduled transfer has finished.
    """

    def __init__(
        self,
        client: PanelClient,
        on_refresh: Optional[Callable[[], Any]] = None,
        thresholds: Optional[Dict[str, int]] = None,
    ):
        """
        Args:
            client: Panel client (already logged in)
            on_refresh: Called after each item finishes, e.g. to re-list files
            thresholds: Confirmation thresholds in bytes per category
        """
        self.client = client
        self.on_refresh = on_refresh
        self.thresholds = thresholds or settings.upload_thresholds()
        self._queue: List[UploadItem] = []
        self._pending: Dict[str, _PendingUpload] = {}
        self._tasks: List[asyncio.Task] = []
        self._active = 0

    @property
    def queue(self) -> List[UploadItem]:
        """Items newest batch first"""
        return list(self._queue)

    @property
    def is_uploading(self) -> bool:
        return self._active > 0

    def get(self, item_id: str) -> Optional[UploadItem]:
        return next((item for item in self._queue if item.id == item_id), None)

    def enqueue(
        self,
        files: Iterable[LocalFile],
        prefix: Optional[str] = None,
        on_success: Optional[Callable[[UploadItem], Any]] = None,
        on_error: Optional[Callable[[UploadItem, str], Any]] = None,
    ) -> List[UploadItem]:
        """
        Add files to the queue and start those below their threshold.

        Items that already succeeded are dropped from the queue; failed items
        stay visible after the new batch.

        Returns:
            The new items, in the order given
        """
        files = list(files)
        if not files:
            return []

        items: List[UploadItem] = []
        for local_file in files:
            check = check_upload_confirmation(local_file.name, local_file.size, self.thresholds)
            is_image = bool(local_file.content_type and local_file.content_type.startswith("image/"))

            item = UploadItem(
                id=str(uuid4()),
                file_name=local_file.name,
                size=local_file.size,
                status=UploadState.AWAITING_CONFIRMATION if check.required else UploadState.PENDING,
                mime_type=local_file.content_type,
                target_prefix=prefix,
                requires_confirmation=check.required,
                confirmation_message=check.message,
                preview_path=str(local_file.path) if is_image and local_file.path else None,
            )
            items.append(item)
            self._pending[item.id] = _PendingUpload(
                file=local_file, prefix=prefix, on_success=on_success, on_error=on_error
            )

        self._queue = items + [item for item in self._queue if item.status != UploadState.SUCCESS]

        for item in items:
            if item.requires_confirmation:
                logger.info(f"Upload awaiting confirmation: {item.file_name} ({format_bytes(item.size)})")
            else:
                self._schedule(item.id)

        return items

    def confirm(self, item_id: str) -> bool:
        """
        Start an item waiting for confirmation.

        Returns:
            False when the item is unknown, already started or finished
        """
        item = self.get(item_id)
        if item is None or item.status != UploadState.AWAITING_CONFIRMATION:
            return False
        if item_id not in self._pending:
            return False

        item.status = UploadState.PENDING
        self._schedule(item_id)
        return True

    async def wait(self):
        """Wait for all scheduled transfers"""
        while self._tasks:
            tasks, self._tasks = self._tasks, []
            await asyncio.gather(*tasks)

    def _schedule(self, item_id: str):
        task = asyncio.get_running_loop().create_task(self._run(item_id))
        self._tasks.append(task)

    def _set_progress(self, item: UploadItem, sent: int, total: int):
        if total <= 0:
            return
        percent = min(100.0, sent * 100.0 / total)
        # Progress never moves backwards
        if percent > item.progress:
            item.progress = percent

    async def _run(self, item_id: str):
        pending = self._pending.get(item_id)
        item = self.get(item_id)
        if pending is None or item is None:
            return
        if item.status in (UploadState.UPLOADING, UploadState.SUCCESS):
            return

        local_file = pending.file
        item.status = UploadState.UPLOADING
        item.progress = 0.0
        item.error = None
        self._active += 1

        try:
            presign = await self.client.request_upload(
                file_name=local_file.name,
                content_type=local_file.content_type,
                size=local_file.size,
                prefix=item.target_prefix or pending.prefix,
            )
            item.key = presign.get("key")

            await self.client.put_to_storage(
                presign["uploadUrl"],
                size=local_file.size,
                path=local_file.path,
                data=local_file.data,
                headers=presign.get("headers") or {},
                on_progress=lambda sent, total: self._set_progress(item, sent, total),
            )

            item.status = UploadState.SUCCESS
            item.progress = 100.0
            logger.info(f"Upload finished: {item.key or item.file_name}")
        except Exception as e:
            message = e.message if isinstance(e, PanelClientError) else UNEXPECTED_ERROR_MESSAGE
            if not isinstance(e, PanelClientError):
                logger.error(f"Unexpected upload failure for {item.file_name}: {e}", exc_info=True)
            else:
                logger.warning(f"Upload failed for {item.file_name}: {message}")

            item.status = UploadState.ERROR
            item.error = message
        finally:
            self._pending.pop(item_id, None)
            self._active = max(self._active - 1, 0)

        try:
            if item.status == UploadState.SUCCESS and pending.on_success:
                await _maybe_await(pending.on_success(item))
            if item.status == UploadState.ERROR and pending.on_error:
                await _maybe_await(pending.on_error(item, item.error))
            if self.on_refresh:
                await _maybe_await(self.on_refresh())
        except Exception as e:
            logger.warning(f"Post-upload callback failed: {e}")
