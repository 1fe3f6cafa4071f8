"""On-disk lifecycle of voice model files.

Layout: ``{root}/{model_id}/{file.path}``. A model is ready exactly when
every catalog file exists with its declared byte size; nothing else
(timestamps, hashes, marker files) counts.
"""

import hashlib
import shutil
from collections.abc import Callable
from enum import Enum
from pathlib import Path

import httpx

from neural_tts.exceptions import DownloadFailedError, ModelStorageError
from neural_tts.models.catalog import ModelFile, VoiceModel
from neural_tts.utils.logging import get_logger
from neural_tts.utils.timing import Timer

logger = get_logger("models")

ProgressCallback = Callable[[int], None]


class ModelStatus(str, Enum):
    """Download state of a model on disk."""

    NOT_DOWNLOADED = "not_downloaded"
    PARTIAL = "partial"
    READY = "ready"


def download_percent(done: int, total: int) -> int:
    """Whole-model progress, rounded and capped to 0..100."""
    if total <= 0:
        return 100
    return max(0, min(100, round(done / total * 100)))


class ModelManager:
    """
    Downloads, verifies and removes voice models under one root directory.

    Args:
        root: Directory holding one subdirectory per model
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
        timeout: Read timeout per network operation, in seconds
        chunk_size: Bytes per streamed read
    """

    def __init__(
        self,
        root: Path,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 60.0,
        chunk_size: int = 64 * 1024,
    ) -> None:
        self.root = Path(root)
        self._transport = transport
        self._timeout = timeout
        self._chunk_size = chunk_size

    # -------------------------------------------------------------------------
    # Paths and readiness
    # -------------------------------------------------------------------------

    def model_path(self, model: VoiceModel) -> Path:
        return self.root / model.dir_name

    def file_path(self, model: VoiceModel, file_name: str) -> Path | None:
        """Absolute path of a catalog file, or None if the model has no such file."""
        for file in model.files:
            if file.name == file_name:
                return self.model_path(model) / file.path
        return None

    def _file_complete(self, model: VoiceModel, file: ModelFile) -> bool:
        path = self.model_path(model) / file.path
        try:
            return path.is_file() and path.stat().st_size == file.size
        except OSError:
            return False

    def is_ready(self, model: VoiceModel) -> bool:
        """True iff every file exists with exactly its declared size."""
        return all(self._file_complete(model, f) for f in model.files)

    def status(self, model: VoiceModel) -> ModelStatus:
        if self.is_ready(model):
            return ModelStatus.READY
        if any((self.model_path(model) / f.path).exists() for f in model.files):
            return ModelStatus.PARTIAL
        return ModelStatus.NOT_DOWNLOADED

    # -------------------------------------------------------------------------
    # Download
    # -------------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            follow_redirects=True,
            timeout=httpx.Timeout(self._timeout, connect=15.0),
        )

    def _check_disk_space(self, required: int) -> None:
        """Advisory free-space check; never blocks the download."""
        existing = self.root
        while not existing.exists() and existing != existing.parent:
            existing = existing.parent
        try:
            free = shutil.disk_usage(existing).free
        except OSError as e:
            logger.debug("Could not determine free disk space", path=str(existing), error=str(e))
            return
        if free < required:
            logger.warning(
                "Free disk space may be insufficient for model download",
                required_bytes=required,
                free_bytes=free,
            )

    async def download(
        self,
        model: VoiceModel,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """
        Fetch every missing or wrong-sized file of ``model``.

        Files already present with the right size are skipped without any
        network request. Progress is reported across the whole model as a
        0..100 percentage, only when the value changes.

        Raises:
            DownloadFailedError: Non-2xx response, transport error, short
                body or checksum mismatch. Partially written files are left
                in place and re-fetched by the next call.
            ModelStorageError: The model directory could not be created.
        """
        model_dir = self.model_path(model)
        pending = [f for f in model.files if not self._file_complete(model, f)]
        done = sum(f.size for f in model.files if f not in pending)

        last_reported = -1

        def report(done_bytes: int) -> None:
            nonlocal last_reported
            percent = download_percent(done_bytes, model.size_bytes)
            if progress_callback is not None and percent != last_reported:
                last_reported = percent
                progress_callback(percent)

        report(done)
        if not pending:
            logger.info("Model already downloaded", model=model.id)
            return

        try:
            model_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ModelStorageError(
                f"Cannot create model directory for {model.id}",
                path=str(model_dir),
                reason=str(e),
            ) from e

        self._check_disk_space(sum(f.size for f in pending))

        logger.info(
            "Downloading model",
            model=model.id,
            files=[f.name for f in pending],
            bytes_needed=sum(f.size for f in pending),
        )

        with Timer("Model download", logger=logger, log_level="info", model=model.id):
            async with self._client() as client:
                for file in pending:
                    done = await self._download_file(client, model, file, done, report)

    async def _download_file(
        self,
        client: httpx.AsyncClient,
        model: VoiceModel,
        file: ModelFile,
        done: int,
        report: Callable[[int], None],
    ) -> int:
        url = model.url_for(file)
        dest = self.model_path(model) / file.path
        written = 0

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            async with client.stream("GET", url) as response:
                if not response.is_success:
                    raise DownloadFailedError(
                        f"HTTP {response.status_code} while downloading {file.name}",
                        file=file.name,
                        url=url,
                        status_code=response.status_code,
                    )
                with dest.open("wb") as fh:
                    async for chunk in response.aiter_bytes(self._chunk_size):
                        fh.write(chunk)
                        written += len(chunk)
                        report(done + written)
        except httpx.HTTPError as e:
            raise DownloadFailedError(
                f"Network error while downloading {file.name}: {e}",
                file=file.name,
                url=url,
            ) from e
        except OSError as e:
            raise DownloadFailedError(
                f"Could not write {file.name}: {e}",
                file=file.name,
                url=url,
            ) from e

        if written != file.size:
            raise DownloadFailedError(
                f"Size mismatch for {file.name}: expected {file.size} bytes, got {written}",
                file=file.name,
                url=url,
            )

        if file.checksum:
            digest = _sha256(dest)
            if digest != file.checksum.lower():
                raise DownloadFailedError(
                    f"Checksum mismatch for {file.name}",
                    file=file.name,
                    url=url,
                )

        logger.debug("Downloaded model file", model=model.id, file=file.name, bytes=written)
        return done + written

    # -------------------------------------------------------------------------
    # Disk management
    # -------------------------------------------------------------------------

    def delete(self, model: VoiceModel) -> None:
        """Remove the model's directory; a missing directory is not an error."""
        path = self.model_path(model)
        if not path.exists():
            return
        try:
            shutil.rmtree(path)
        except OSError as e:
            raise ModelStorageError(
                f"Cannot delete model {model.id}",
                path=str(path),
                reason=str(e),
            ) from e
        logger.info("Deleted model", model=model.id, path=str(path))

    def total_disk_usage(self) -> int:
        """Total bytes of all files under the root."""
        if not self.root.exists():
            return 0
        total = 0
        for path in self.root.rglob("*"):
            if path.is_file():
                try:
                    total += path.stat().st_size
                except OSError:
                    continue
        return total


def _sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        for block in iter(lambda: fh.read(1024 * 1024), b""):
            digest.update(block)
    return digest.hexdigest()
