"""S3-compatible object storage provider for Cloudflare R2."""

import logging
import mimetypes
import time
from pathlib import Path

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from reelpost.config import ConfigResolver, get_settings
from reelpost.models.capabilities import UploadResult
from reelpost.models.errors import StageFailure
from reelpost.providers.base import StorageProvider

logger = logging.getLogger(__name__)

R2_KEYS = (
    "r2.account_id",
    "r2.access_key_id",
    "r2.secret_access_key",
    "r2.bucket",
    "r2.public_base_url",
)
KEY_PREFIX = "reels"


class R2ObjectStorage(StorageProvider):
    """Uploads reels to an R2 bucket through its S3 API.

    Objects are written under ``reels/`` and addressed through
    ``r2.public_base_url`` (a public bucket domain), which the publisher
    must be able to fetch.
    """

    def __init__(self, config: ConfigResolver, client=None):
        super().__init__(config)
        values = {key: config.get(key) for key in R2_KEYS}
        missing = [key for key, value in values.items() if not value]
        if missing:
            raise StageFailure(
                f"Missing R2 settings: {', '.join(missing)}",
                component="storage",
                details={"missing": missing},
            )
        self.bucket = values["r2.bucket"]
        self.public_base_url = values["r2.public_base_url"].rstrip("/")
        self.client = client
        if self.client is None:
            timeout = get_settings().http_timeout_secs
            self.client = boto3.client(
                "s3",
                endpoint_url=f"https://{values['r2.account_id']}.r2.cloudflarestorage.com",
                aws_access_key_id=values["r2.access_key_id"],
                aws_secret_access_key=values["r2.secret_access_key"],
                region_name="auto",
                config=Config(connect_timeout=timeout, read_timeout=timeout),
            )

    def upload(self, file_path: Path) -> UploadResult:
        source = Path(file_path)
        if not source.is_file():
            raise StageFailure(f"File not found: {source}", component="storage")

        key = f"{KEY_PREFIX}/{time.time_ns() // 1_000_000}-{source.name}"
        content_type = mimetypes.guess_type(source.name)[0] or "application/octet-stream"
        try:
            self.client.upload_file(
                str(source), self.bucket, key, ExtraArgs={"ContentType": content_type}
            )
        except (BotoCoreError, ClientError) as e:
            raise StageFailure(
                f"R2 upload failed: {e}",
                component="storage",
                details={"bucket": self.bucket, "key": key},
            )
        logger.info("Uploaded %s to r2://%s/%s", source, self.bucket, key)
        return UploadResult(url=f"{self.public_base_url}/{key}")
