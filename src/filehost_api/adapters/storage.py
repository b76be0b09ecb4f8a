"""
Blob storage adapters.

``S3BlobStore`` is used in the aws-mock and aws-prod modes, ``LocalBlobStore``
keeps blobs on the local filesystem for local-dev. Both hand out an opaque
locator (the object key) from ``put`` and accept it back in ``delete``.
"""

import logging
import time
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

from filehost_api.errors import StorageTimeoutError, StorageUnavailableError
from filehost_api.policy import sanitize_filename
from filehost_api.s3.delete_objects import delete_s3_object
from filehost_api.s3.read_objects import bucket_is_reachable, object_exists_in_s3
from filehost_api.s3.write_objects import upload_s3_object
from filehost_api.settings import Settings
from filehost_api.utils.decorators import log_execution_time

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)


def build_object_key(suggested_name: Optional[str], prefix: str = "uploads") -> str:
    """Unique key per call: ``{prefix}/{epoch_ms}-{8 hex}-{safe name}``."""
    name = sanitize_filename(suggested_name)
    stamp = int(time.time() * 1000)
    key = f"{stamp}-{uuid.uuid4().hex[:8]}-{name}"
    prefix = prefix.strip("/")
    return f"{prefix}/{key}" if prefix else key


def _translate_boto_error(action: str, locator: str, error: Exception) -> Exception:
    if isinstance(error, (ConnectTimeoutError, ReadTimeoutError)):
        return StorageTimeoutError(f"Blob store timed out during {action} of {locator}")
    return StorageUnavailableError(f"Blob store failed during {action} of {locator}: {error}")


class S3BlobStore:
    """Blob store backed by an S3 bucket"""

    def __init__(self, bucket_name: str, s3_client: Optional["S3Client"] = None, key_prefix: str = "uploads"):
        self.bucket_name = bucket_name
        self.key_prefix = key_prefix
        self.s3_client = s3_client or boto3.client("s3")

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3BlobStore":
        client_config = Config(
            connect_timeout=settings.blob_connect_timeout_seconds,
            read_timeout=settings.blob_read_timeout_seconds,
            retries={"max_attempts": settings.blob_max_attempts, "mode": "standard"},
        )
        s3_client = boto3.client(
            "s3",
            region_name=settings.aws_region,
            endpoint_url=settings.aws_endpoint_url,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            config=client_config,
        )
        return cls(settings.s3_bucket_name, s3_client=s3_client, key_prefix=settings.s3_key_prefix)

    @log_execution_time
    def put(self, data: bytes, content_type: str, suggested_name: Optional[str]) -> str:
        object_key = build_object_key(suggested_name, self.key_prefix)
        try:
            upload_s3_object(
                bucket_name=self.bucket_name,
                object_key=object_key,
                file_content=data,
                content_type=content_type,
                s3_client=self.s3_client,
            )
        except (BotoCoreError, ClientError) as e:
            raise _translate_boto_error("upload", object_key, e) from e
        logger.info(f"Stored blob s3://{self.bucket_name}/{object_key} ({len(data)} bytes)")
        return object_key

    @log_execution_time
    def delete(self, locator: str) -> bool:
        try:
            delete_s3_object(self.bucket_name, object_key=locator, s3_client=self.s3_client)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                logger.info(f"Blob {locator} already absent")
                return True
            raise _translate_boto_error("delete", locator, e) from e
        except BotoCoreError as e:
            raise _translate_boto_error("delete", locator, e) from e
        logger.info(f"Deleted blob s3://{self.bucket_name}/{locator}")
        return True

    def exists(self, locator: str) -> bool:
        try:
            return object_exists_in_s3(self.bucket_name, locator, s3_client=self.s3_client)
        except (BotoCoreError, ClientError) as e:
            raise _translate_boto_error("lookup", locator, e) from e

    def ping(self) -> bool:
        try:
            return bucket_is_reachable(self.bucket_name, s3_client=self.s3_client)
        except (BotoCoreError, ClientError) as e:
            raise _translate_boto_error("health check", self.bucket_name, e) from e


class LocalBlobStore:
    """Blob store that writes into a local directory"""

    def __init__(self, storage_dir: str, key_prefix: str = "uploads"):
        self.storage_dir = Path(storage_dir)
        self.key_prefix = key_prefix
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, locator: str) -> Path:
        root = self.storage_dir.resolve()
        path = (root / locator).resolve()
        if root not in path.parents:
            raise StorageUnavailableError(f"Locator escapes storage directory: {locator}")
        return path

    @log_execution_time
    def put(self, data: bytes, content_type: str, suggested_name: Optional[str]) -> str:
        object_key = build_object_key(suggested_name, self.key_prefix)
        dest_path = self._path_for(object_key)
        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            dest_path.write_bytes(data)
        except OSError as e:
            raise StorageUnavailableError(f"Could not write blob {object_key}: {e}") from e
        logger.info(f"Stored blob {dest_path} ({len(data)} bytes, {content_type})")
        return object_key

    @log_execution_time
    def delete(self, locator: str) -> bool:
        path = self._path_for(locator)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageUnavailableError(f"Could not delete blob {locator}: {e}") from e
        logger.info(f"Deleted blob {path}")
        return True

    def exists(self, locator: str) -> bool:
        return self._path_for(locator).exists()

    def ping(self) -> bool:
        if not self.storage_dir.is_dir():
            raise StorageUnavailableError(f"Storage directory missing: {self.storage_dir}")
        return True


def get_blob_store(settings: Settings):
    """Pick the blob backend for the configured deployment mode."""
    if settings.uses_s3:
        logger.info(f"Using S3 bucket: {settings.s3_bucket_name}")
        return S3BlobStore.from_settings(settings)
    logger.info(f"Using local blob storage at: {settings.storage_dir}")
    return LocalBlobStore(settings.storage_dir, key_prefix=settings.s3_key_prefix)
