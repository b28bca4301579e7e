"""Shared test fixtures for the Audio Compression Orchestrator."""

import logging
import os
import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from aco.compression.coordinator import CompressionCoordinator
from aco.compression.exceptions import TranscodeError
from aco.compression.storage import PublicStorage
from aco.config.models import CompressionProfile
from aco.db.store import SqliteAssetStore
from aco.db.types import AssetRecord


class FakeTranscoder:
    """Stands in for AudioTranscoder, writing real bytes to the target.

    Attributes:
        calls: (input_path, output_path) for every transcode call.
        output_bytes: Bytes written on success; b"" simulates an empty output.
        error: If set, raised instead of writing output.
    """

    def __init__(self, output_bytes: bytes = b"\xff\xfb" * 1024) -> None:
        self.calls: list[tuple[Path, Path]] = []
        self.output_bytes = output_bytes
        self.error: Exception | None = None

    async def transcode(
        self, input_path: Path, output_path: Path, profile: CompressionProfile
    ) -> None:
        self.calls.append((input_path, output_path))
        if self.error is not None:
            raise self.error
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(self.output_bytes)

    def fail_with(self, returncode: int = 1, stderr: str = "Invalid data") -> None:
        self.error = TranscodeError(
            f"Encoder exited with code {returncode}",
            returncode=returncode,
            stderr=stderr,
        )


def _created_at(n: int) -> str:
    moment = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=n)
    return moment.isoformat()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture(autouse=True)
def aco_environment(temp_dir: Path):
    """Isolate every test from the developer's ACO settings.

    Points ACO_DATA_DIR at a temporary directory and hides any AUDIO_* or
    ACO_* variables from the surrounding environment.
    """
    data_dir = temp_dir / ".aco"
    data_dir.mkdir(parents=True, exist_ok=True)

    with patch.dict(os.environ, {"ACO_DATA_DIR": str(data_dir)}):
        for key in list(os.environ):
            if key.startswith(("AUDIO_", "ACO_")) and key != "ACO_DATA_DIR":
                del os.environ[key]
        yield data_dir


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo configure_logging() calls made by CLI and logging tests."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def public_dir(temp_dir: Path) -> Path:
    """Public directory with an empty uploads/ subdirectory."""
    path = temp_dir / "public"
    (path / "uploads").mkdir(parents=True)
    return path


@pytest.fixture
def storage(public_dir: Path) -> PublicStorage:
    return PublicStorage(public_dir, "uploads")


@pytest.fixture
def store(temp_dir: Path) -> SqliteAssetStore:
    """Initialized asset store in the temporary directory."""
    asset_store = SqliteAssetStore(temp_dir / "assets.db")
    asset_store.initialize()
    return asset_store


@pytest.fixture
def profile() -> CompressionProfile:
    return CompressionProfile()


@pytest.fixture
def fake_transcoder() -> FakeTranscoder:
    return FakeTranscoder()


@pytest.fixture
def coordinator(store, fake_transcoder, storage, profile) -> CompressionCoordinator:
    return CompressionCoordinator(
        store=store, transcoder=fake_transcoder, storage=storage, profile=profile
    )


@pytest.fixture
def make_asset(store: SqliteAssetStore, public_dir: Path):
    """Factory storing an asset record, writing its file unless told not to.

    The file size matches ``size_kb`` (1 KB = 1000 bytes) so the record and
    the file agree.
    """
    counter = {"n": 0}

    def _make(
        size_kb: float = 2048,
        extension: str = ".wav",
        mime_type: str = "audio/wav",
        provider: str = "local",
        write_file: bool = True,
        compression_metadata: dict | None = None,
        created_at: str | None = None,
    ) -> AssetRecord:
        counter["n"] += 1
        content_hash = f"track_{counter['n']:04d}"
        url = f"/uploads/{content_hash}{extension}"
        if write_file:
            (public_dir / "uploads" / f"{content_hash}{extension}").write_bytes(
                b"\x00" * int(size_kb * 1000)
            )
        return store.insert_asset(
            AssetRecord(
                id=None,
                name=f"Track {counter['n']}",
                provider=provider,
                url=url,
                content_hash=content_hash,
                extension=extension,
                mime_type=mime_type,
                size_kb=size_kb,
                formats={"preview": {"url": f"/uploads/preview_{content_hash}"}},
                compression_metadata=compression_metadata,
                created_at=created_at or _created_at(counter["n"]),
            )
        )

    return _make
