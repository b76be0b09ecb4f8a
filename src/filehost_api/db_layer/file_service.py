"""
File lifecycle service.

Orchestrates upload, listing, sharing, stats, tagging and deletion of file
records. Every operation that takes a caller identity enforces ownership:
a record owned by someone else is reported exactly like a missing one.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Union

from filehost_api.errors import (
    InvalidIdentifierError,
    InvalidInputError,
    LinkCollisionError,
    NotFoundError,
    PayloadTooLargeError,
    StorageUnavailableError,
    UnsupportedMediaTypeError,
)
from filehost_api.policy import (
    generate_file_id,
    generate_shareable_link,
    is_valid_file_id,
    normalize_tags,
    parse_tag_string,
    sanitize_filename,
)
from filehost_api.settings import DEFAULT_ALLOWED_MIME_TYPES, DEFAULT_MAX_UPLOAD_BYTES, Settings
from filehost_api.utils.decorators import retry

logger = logging.getLogger(__name__)

LINK_ASSIGN_ATTEMPTS = 5


class FileService:
    """Service for managing file records and their blobs"""

    def __init__(
        self,
        record_store,
        blob_store,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        allowed_mime_types: Sequence[str] = tuple(DEFAULT_ALLOWED_MIME_TYPES),
    ):
        self.record_store = record_store
        self.blob_store = blob_store
        self.max_upload_bytes = max_upload_bytes
        self.allowed_mime_types = frozenset(allowed_mime_types)

    @classmethod
    def from_settings(cls, settings: Settings, record_store, blob_store) -> "FileService":
        return cls(
            record_store,
            blob_store,
            max_upload_bytes=settings.max_upload_bytes,
            allowed_mime_types=settings.allowed_mime_types,
        )

    @staticmethod
    def _require_file_id(file_id: Any) -> str:
        if not is_valid_file_id(file_id):
            raise InvalidIdentifierError()
        return file_id

    def _load_owned(self, owner_id: str, file_id: str) -> Dict[str, Any]:
        document = self.record_store.find_owned_file(owner_id, file_id)
        if document is None:
            raise NotFoundError()
        return document

    def upload(
        self,
        owner_id: str,
        data: bytes,
        content_type: Optional[str],
        original_name: Optional[str],
        raw_tags: Optional[Union[str, List[str]]] = None,
    ) -> Dict[str, Any]:
        """Validate and store a new file; the blob is written before the record."""
        if content_type not in self.allowed_mime_types:
            raise UnsupportedMediaTypeError(
                f"Invalid file type: {content_type or 'unknown'}. "
                f"Allowed: {', '.join(sorted(self.allowed_mime_types))}"
            )
        if len(data) > self.max_upload_bytes:
            raise PayloadTooLargeError(f"File exceeds the {self.max_upload_bytes} byte limit")

        if isinstance(raw_tags, str) or raw_tags is None:
            tags = parse_tag_string(raw_tags)
        else:
            tags = normalize_tags(tag for tag in raw_tags if isinstance(tag, str))

        original_name = original_name or "file"
        locator = self.blob_store.put(data, content_type, original_name)

        document = {
            "file_id": generate_file_id(),
            "owner_id": owner_id,
            "filename": sanitize_filename(original_name),
            "original_name": original_name,
            "mime_type": content_type,
            "size_bytes": len(data),
            "blob_locator": locator,
            "tags": tags,
            "shareable_link": None,
            "view_count": 0,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self.record_store.create_file(document)
        except Exception as e:
            logger.error(f"Record creation failed for blob {locator}, removing blob: {e}")
            try:
                self.blob_store.delete(locator)
            except Exception as cleanup_error:
                logger.error(f"Could not remove orphan blob {locator}: {cleanup_error}")
            raise

        logger.info(f"Uploaded file {document['file_id']} for owner {owner_id} ({len(data)} bytes)")
        return document

    def list_files(self, owner_id: str) -> List[Dict[str, Any]]:
        return self.record_store.list_files(owner_id)

    @retry(max_attempts=LINK_ASSIGN_ATTEMPTS, delay=0.0, exceptions=(LinkCollisionError,))
    def _assign_new_link(self, file_id: str) -> Optional[str]:
        return self.record_store.assign_link(file_id, generate_shareable_link())

    def share(self, owner_id: str, file_id: str) -> Dict[str, Any]:
        """Count a view and make sure the record has a shareable link.

        Re-sharing keeps the existing link.
        """
        file_id = self._require_file_id(file_id)
        document = self._load_owned(owner_id, file_id)

        if self.record_store.increment_views(file_id) is None:
            raise NotFoundError()

        if not document.get("shareable_link"):
            try:
                link = self._assign_new_link(file_id)
            except LinkCollisionError as e:
                raise StorageUnavailableError("Could not allocate a unique shareable link") from e
            if link is None:
                raise NotFoundError()

        document = self.record_store.get_file(file_id)
        if document is None:
            raise NotFoundError()
        logger.info(f"Shared file {file_id} (views: {document['view_count']})")
        return document

    def access_by_link(self, link: str) -> Dict[str, Any]:
        """Public read through a shareable link; counts one view."""
        if not isinstance(link, str) or not link:
            raise NotFoundError()
        document = self.record_store.find_by_link(link)
        if document is None:
            raise NotFoundError()

        view_count = self.record_store.increment_views(document["file_id"])
        if view_count is None:
            raise NotFoundError()
        document["view_count"] = view_count
        return document

    def stats(self, owner_id: str, file_id: str) -> int:
        file_id = self._require_file_id(file_id)
        return self._load_owned(owner_id, file_id)["view_count"]

    def delete(self, owner_id: str, file_id: str) -> None:
        """Delete the blob, then the record.

        A blob store failure propagates and leaves the record in place so the
        call can be retried.
        """
        file_id = self._require_file_id(file_id)
        document = self._load_owned(owner_id, file_id)

        self.blob_store.delete(document["blob_locator"])
        if not self.record_store.delete_file(file_id):
            raise NotFoundError()
        logger.info(f"Deleted file {file_id} for owner {owner_id}")

    def add_tags(self, owner_id: str, file_id: str, tags: Any) -> Dict[str, Any]:
        file_id = self._require_file_id(file_id)
        if not isinstance(tags, list):
            raise InvalidInputError("Tags must be an array")
        if len(tags) == 0:
            raise InvalidInputError("At least one tag is required")
        if not all(isinstance(tag, str) for tag in tags):
            raise InvalidInputError("Tags must be strings")
        new_tags = normalize_tags(tags)
        if not new_tags:
            raise InvalidInputError("At least one non-blank tag is required")

        self._load_owned(owner_id, file_id)
        document = self.record_store.add_tags(file_id, new_tags)
        if document is None:
            raise NotFoundError()
        return document
