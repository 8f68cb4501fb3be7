"""Unit tests for the upload orchestrator"""

import asyncio

import pytest

from bucket_panel.config import ONE_MB
from bucket_panel.services.panel_client import PanelClientError
from bucket_panel.services.upload_orchestrator import (
    LocalFile,
    UploadManager,
    UploadState,
    check_upload_confirmation,
)


class FakePanelClient:
    """Records requests and reports progress in several steps"""

    def __init__(self, sign_error=None, put_error=None, steps=4):
        self.sign_error = sign_error
        self.put_error = put_error
        self.steps = steps
        self.signed = []
        self.put_calls = []
        self.progress_seen = []
        self.manager = None

    async def request_upload(self, file_name, content_type, size, prefix=None):
        if self.sign_error:
            raise self.sign_error
        key = "/".join(part for part in (prefix, file_name) if part)
        self.signed.append(key)
        return {
            "uploadUrl": f"https://bucket.example.com/{key}?signature=abc",
            "key": key,
            "headers": {"Content-Type": content_type} if content_type else {},
        }

    async def put_to_storage(self, upload_url, size, path=None, data=None, headers=None, on_progress=None):
        self.put_calls.append((upload_url, headers))
        item = self.manager.queue[0] if self.manager else None

        for step in range(1, self.steps + 1):
            on_progress(size * step // self.steps, size)
            if step == 2:
                # Late event with a smaller count
                on_progress(size // 10, size)
            if item is not None:
                self.progress_seen.append(item.progress)

        if self.put_error:
            raise self.put_error
        return 200


class GatedPanelClient(FakePanelClient):
    """Holds every PUT until ``release`` is set so transfers overlap"""

    def __init__(self, failing=(), expected=2):
        super().__init__()
        self.failing = set(failing)
        self.expected = expected
        self.release = asyncio.Event()
        self.all_started = asyncio.Event()
        self.in_flight = 0
        self.max_in_flight = 0

    async def put_to_storage(self, upload_url, size, path=None, data=None, headers=None, on_progress=None):
        self.put_calls.append((upload_url, headers))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        if self.in_flight >= self.expected:
            self.all_started.set()

        try:
            await self.release.wait()
        finally:
            self.in_flight -= 1

        on_progress(size, size)
        file_name = upload_url.split("?", 1)[0].rsplit("/", 1)[-1]
        if file_name in self.failing:
            raise PanelClientError("<Error><Code>AccessDenied</Code></Error>", 403)
        return 200


def make_manager(client, on_refresh=None):
    manager = UploadManager(client, on_refresh=on_refresh)
    client.manager = manager
    return manager


class TestConfirmationCheck:
    def test_below_threshold(self):
        check = check_upload_confirmation("photo.png", 3 * ONE_MB - 1)

        assert check.required is False
        assert check.category == "image"

    def test_at_threshold(self):
        check = check_upload_confirmation("photo.png", 3 * ONE_MB)

        assert check.required is True

    def test_message_cites_size_and_threshold(self):
        check = check_upload_confirmation("clip.mp4", 250 * ONE_MB)

        assert check.required is True
        assert check.message == (
            "Este vídeo possui 250 MB e ultrapassa o limite de upload automático (200 MB). "
            "Confirme para iniciar o envio."
        )

    def test_custom_thresholds(self):
        thresholds = {"text": 10 * ONE_MB, "other": 80 * ONE_MB}

        assert check_upload_confirmation("notes.txt", 20 * ONE_MB, thresholds).required is True
        assert check_upload_confirmation("notes.txt", 20 * ONE_MB).required is False


class TestUploadManager:
    @pytest.mark.asyncio
    async def test_small_file_uploads_immediately(self):
        client = FakePanelClient()
        refreshes = []
        manager = make_manager(client, on_refresh=lambda: refreshes.append(True))

        items = manager.enqueue([LocalFile.from_bytes("notes.txt", b"hello world")], prefix="docs")

        assert items[0].status == UploadState.PENDING
        await manager.wait()

        assert items[0].status == UploadState.SUCCESS
        assert items[0].progress == 100.0
        assert items[0].key == "docs/notes.txt"
        assert client.signed == ["docs/notes.txt"]
        assert refreshes == [True]
        assert manager.is_uploading is False

    @pytest.mark.asyncio
    async def test_large_video_waits_for_confirmation(self):
        """250 MB video: held for confirmation, then uploads with monotonic progress"""
        client = FakePanelClient()
        manager = make_manager(client)

        video = LocalFile(name="clip.mp4", size=250 * ONE_MB, content_type="video/mp4")
        item = manager.enqueue([video])[0]
        await manager.wait()

        assert item.status == UploadState.AWAITING_CONFIRMATION
        assert "250 MB" in item.confirmation_message
        assert "200 MB" in item.confirmation_message
        assert client.signed == []

        payload = item.to_dict()
        assert payload["status"] == "awaiting_confirmation"
        assert payload["requiresConfirmation"] is True
        assert payload["mimeType"] == "video/mp4"

        assert manager.confirm(item.id) is True
        await manager.wait()

        assert item.status == UploadState.SUCCESS
        assert item.progress == 100.0
        assert client.progress_seen == sorted(client.progress_seen)
        assert client.progress_seen[-1] == 100.0

    @pytest.mark.asyncio
    async def test_confirm_only_applies_to_waiting_items(self):
        client = FakePanelClient()
        manager = make_manager(client)

        item = manager.enqueue([LocalFile.from_bytes("a.txt", b"abc")])[0]
        await manager.wait()

        assert manager.confirm(item.id) is False
        assert manager.confirm("unknown") is False
        assert len(client.signed) == 1

    @pytest.mark.asyncio
    async def test_sign_failure_is_terminal(self):
        client = FakePanelClient(sign_error=PanelClientError("Seu perfil não possui permissão para esta ação.", 403))
        refreshes = []
        errors = []
        manager = make_manager(client, on_refresh=lambda: refreshes.append(True))

        item = manager.enqueue(
            [LocalFile.from_bytes("a.txt", b"abc")],
            on_error=lambda failed, message: errors.append(message),
        )[0]
        await manager.wait()

        assert item.status == UploadState.ERROR
        assert item.error == "Seu perfil não possui permissão para esta ação."
        assert errors == [item.error]
        assert refreshes == [True]
        assert client.put_calls == []

        # Failed items are not retried
        assert manager.confirm(item.id) is False
        await manager.wait()
        assert item.status == UploadState.ERROR

    @pytest.mark.asyncio
    async def test_put_failure_keeps_response_body(self):
        client = FakePanelClient(put_error=PanelClientError("<Error><Code>AccessDenied</Code></Error>", 403))
        manager = make_manager(client)

        item = manager.enqueue([LocalFile.from_bytes("a.txt", b"abc")])[0]
        await manager.wait()

        assert item.status == UploadState.ERROR
        assert "AccessDenied" in item.error
        assert len(client.put_calls) == 1

    @pytest.mark.asyncio
    async def test_new_batch_drops_finished_items(self):
        manager = make_manager(FakePanelClient())

        first = manager.enqueue([LocalFile.from_bytes("a.txt", b"a")])[0]
        waiting = manager.enqueue([LocalFile(name="big.mp4", size=300 * ONE_MB)])[0]
        await manager.wait()

        second = manager.enqueue([LocalFile.from_bytes("b.txt", b"b")])[0]

        ids = [item.id for item in manager.queue]
        assert first.id not in ids
        assert ids[:2] == [second.id, waiting.id]
        await manager.wait()

    @pytest.mark.asyncio
    async def test_image_preview_path(self, tmp_path):
        image = tmp_path / "photo.png"
        image.write_bytes(b"\x89PNG....")

        manager = make_manager(FakePanelClient())
        item = manager.enqueue([LocalFile.from_path(image)])[0]
        await manager.wait()

        assert item.mime_type == "image/png"
        assert item.preview_path == str(image)
        assert item.size == image.stat().st_size

    def test_empty_batch(self):
        manager = make_manager(FakePanelClient())

        assert manager.enqueue([]) == []
        assert manager.queue == []

    @pytest.mark.asyncio
    async def test_overlapping_uploads_refresh_once_per_item(self):
        client = GatedPanelClient(failing={"broken.txt"})
        refreshes = []
        errors = []
        manager = make_manager(client, on_refresh=lambda: refreshes.append(True))

        ok, broken = manager.enqueue(
            [LocalFile.from_bytes("ok.txt", b"ok"), LocalFile.from_bytes("broken.txt", b"no")],
            on_error=lambda failed, message: errors.append(failed.file_name),
        )
        await asyncio.wait_for(client.all_started.wait(), timeout=1)

        assert client.max_in_flight == 2
        assert manager.is_uploading is True
        assert ok.status == UploadState.UPLOADING
        assert broken.status == UploadState.UPLOADING
        assert refreshes == []

        client.release.set()
        await manager.wait()

        assert ok.status == UploadState.SUCCESS
        assert broken.status == UploadState.ERROR
        assert "AccessDenied" in broken.error
        assert errors == ["broken.txt"]
        assert refreshes == [True, True]
        assert manager.is_uploading is False
