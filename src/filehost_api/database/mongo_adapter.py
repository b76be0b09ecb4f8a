"""
MongoDB adapter for file records.
Provides the same interface as NoSQLAdapter but uses a native MongoDB collection.
"""

import logging
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.errors import (
    DuplicateKeyError,
    ExecutionTimeout,
    NetworkTimeout,
    PyMongoError,
    ServerSelectionTimeoutError,
    WTimeoutError,
)

from filehost_api.database.schemas import DOCUMENT_VALIDATORS, FILE_COLLECTION
from filehost_api.errors import LinkCollisionError, StorageTimeoutError, StorageUnavailableError

logger = logging.getLogger(__name__)

_TIMEOUT_ERRORS = (ServerSelectionTimeoutError, NetworkTimeout, ExecutionTimeout, WTimeoutError)


def _translate_mongo_error(action: str, error: PyMongoError) -> Exception:
    if isinstance(error, _TIMEOUT_ERRORS):
        return StorageTimeoutError(f"MongoDB timed out during {action}")
    return StorageUnavailableError(f"MongoDB error during {action}: {error}")


def _strip_id(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    # Remove MongoDB's _id field for compatibility with the NoSQLAdapter interface
    if document is not None:
        document.pop('_id', None)
    return document


class MongoAdapter:
    """MongoDB adapter for file record operations"""

    def __init__(
        self,
        connection_string: str,
        database: str = "filehost",
        timeout: float = 5.0,
        client: Optional[MongoClient] = None,
    ):
        if not connection_string and client is None:
            raise ValueError("MongoDB connection string required. Set MONGODB_URI or pass connection_string")

        timeout_ms = int(timeout * 1000)
        self.client = client or MongoClient(
            connection_string,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
            socketTimeoutMS=timeout_ms,
        )
        self.db = self.client[database]
        self.collection = self.db[FILE_COLLECTION]
        logger.info(f"Using MongoDB database: {database}")

    def _validate_document(self, document: Dict[str, Any]) -> None:
        """Validate document against schema"""
        try:
            DOCUMENT_VALIDATORS[FILE_COLLECTION](document)
        except Exception as e:
            logger.error(f"Document validation failed for {FILE_COLLECTION}: {e}")
            raise ValueError(f"Document validation failed: {e}")

    def init_collections(self) -> None:
        """Create the files collection indexes"""
        try:
            self.collection.create_index([("file_id", ASCENDING)], unique=True)
            self.collection.create_index([("owner_id", ASCENDING), ("created_at", ASCENDING)])
            # Only string links take part in uniqueness; records without a link are not indexed
            self.collection.create_index(
                [("shareable_link", ASCENDING)],
                unique=True,
                partialFilterExpression={"shareable_link": {"$type": "string"}},
            )
        except PyMongoError as e:
            logger.error(f"Error initializing MongoDB collections: {e}")
            raise _translate_mongo_error("index creation", e) from e
        logger.info("MongoDB collections and indexes initialized successfully")

    def create_file(self, document: Dict[str, Any]) -> str:
        self._validate_document(document)
        try:
            self.collection.insert_one(dict(document))
        except PyMongoError as e:
            logger.error(f"Error creating file document {document['file_id']}: {e}")
            raise _translate_mongo_error("insert", e) from e
        logger.info(f"Created document in {FILE_COLLECTION} with ID: {document['file_id']}")
        return document['file_id']

    def _find_one(self, query: Dict[str, Any], action: str) -> Optional[Dict[str, Any]]:
        try:
            return _strip_id(self.collection.find_one(query))
        except PyMongoError as e:
            logger.error(f"Error during {action}: {e}")
            raise _translate_mongo_error(action, e) from e

    def get_file(self, file_id: str) -> Optional[Dict[str, Any]]:
        return self._find_one({"file_id": file_id}, "get_file")

    def find_owned_file(self, owner_id: str, file_id: str) -> Optional[Dict[str, Any]]:
        return self._find_one({"file_id": file_id, "owner_id": owner_id}, "find_owned_file")

    def find_by_link(self, link: str) -> Optional[Dict[str, Any]]:
        return self._find_one({"shareable_link": link}, "find_by_link")

    def list_files(self, owner_id: str) -> List[Dict[str, Any]]:
        try:
            cursor = self.collection.find({"owner_id": owner_id}).sort(
                [("created_at", ASCENDING), ("file_id", ASCENDING)]
            )
            return [_strip_id(doc) for doc in cursor]
        except PyMongoError as e:
            logger.error(f"Error listing files for {owner_id}: {e}")
            raise _translate_mongo_error("list_files", e) from e

    def increment_views(self, file_id: str) -> Optional[int]:
        try:
            document = self.collection.find_one_and_update(
                {"file_id": file_id},
                {"$inc": {"view_count": 1}},
                projection={"view_count": True, "_id": False},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error(f"Error incrementing views for {file_id}: {e}")
            raise _translate_mongo_error("increment_views", e) from e
        if document is None:
            return None
        logger.info(f"Incremented views for {file_id} to {document['view_count']}")
        return document["view_count"]

    def assign_link(self, file_id: str, link: str) -> Optional[str]:
        """Compare-and-set the shareable link; returns the stored link"""
        try:
            document = self.collection.find_one_and_update(
                {"file_id": file_id, "shareable_link": None},
                {"$set": {"shareable_link": link}},
                projection={"shareable_link": True, "_id": False},
                return_document=ReturnDocument.AFTER,
            )
            if document is None:
                # Either absent or already linked by an earlier share
                document = self.collection.find_one(
                    {"file_id": file_id}, projection={"shareable_link": True, "_id": False}
                )
        except DuplicateKeyError as e:
            logger.warning(f"Shareable link collision while sharing {file_id}")
            raise LinkCollisionError(link) from e
        except PyMongoError as e:
            logger.error(f"Error assigning link to {file_id}: {e}")
            raise _translate_mongo_error("assign_link", e) from e
        if document is None:
            return None
        return document.get("shareable_link")

    def add_tags(self, file_id: str, tags: List[str]) -> Optional[Dict[str, Any]]:
        try:
            document = self.collection.find_one_and_update(
                {"file_id": file_id},
                {"$addToSet": {"tags": {"$each": list(tags)}}},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error(f"Error adding tags to {file_id}: {e}")
            raise _translate_mongo_error("add_tags", e) from e
        if document is not None:
            logger.info(f"Updated tags for {file_id}: {document.get('tags')}")
        return _strip_id(document)

    def delete_file(self, file_id: str) -> bool:
        try:
            result = self.collection.delete_one({"file_id": file_id})
        except PyMongoError as e:
            logger.error(f"Error deleting document {file_id}: {e}")
            raise _translate_mongo_error("delete_file", e) from e
        success = result.deleted_count > 0
        if success:
            logger.info(f"Deleted document from {FILE_COLLECTION} with ID: {file_id}")
        else:
            logger.warning(f"No document found to delete in {FILE_COLLECTION} with ID: {file_id}")
        return success

    def ping(self) -> bool:
        try:
            self.client.admin.command('ping')
        except PyMongoError as e:
            raise _translate_mongo_error("ping", e) from e
        return True

    def close(self) -> None:
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            logger.info("MongoDB connection closed")
