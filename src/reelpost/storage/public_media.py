"""Local storage provider publishing files from a directory served over HTTP."""

import logging
import shutil
import time
from pathlib import Path

from reelpost.config import ConfigResolver
from reelpost.models.capabilities import UploadResult
from reelpost.models.errors import StageFailure
from reelpost.providers.base import StorageProvider

logger = logging.getLogger(__name__)


class LocalMediaStorage(StorageProvider):
    """Copies uploads into ``storage.public_dir``.

    The API mounts that directory at ``/media``; ``storage.public_base_url``
    must be the externally reachable address of that mount.
    """

    def __init__(self, config: ConfigResolver):
        super().__init__(config)
        self.public_dir = Path(config.get("storage.public_dir") or "./public")
        self.base_url = (config.get("storage.public_base_url") or "").rstrip("/")

    def upload(self, file_path: Path) -> UploadResult:
        source = Path(file_path)
        if not source.is_file():
            raise StageFailure(f"File not found: {source}", component="storage")
        if not self.base_url:
            raise StageFailure("storage.public_base_url is not configured", component="storage")

        self.public_dir.mkdir(parents=True, exist_ok=True)
        name = f"{time.time_ns() // 1_000_000}-{source.name}"
        shutil.copy2(source, self.public_dir / name)
        logger.info("Published %s as %s", source, name)
        return UploadResult(url=f"{self.base_url}/{name}")

