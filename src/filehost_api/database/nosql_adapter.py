"""
SQLite-backed document store for file records.

Each record is stored as a JSON document. ``owner_id`` and ``shareable_link``
are mirrored into indexed columns; the link column is UNIQUE so the database
itself guarantees that one link maps to at most one record.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

from filehost_api.database.schemas import DOCUMENT_VALIDATORS, FILE_COLLECTION
from filehost_api.errors import LinkCollisionError, StorageTimeoutError, StorageUnavailableError
from filehost_api.policy import merge_tags

logger = logging.getLogger(__name__)


class NoSQLAdapter:
    """Document-based file record store on top of SQLite JSON"""

    def __init__(self, db_path: str = "filehost.db", timeout: float = 5.0):
        self.db_path = db_path
        self.timeout = timeout

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with JSON support"""
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self, immediate: bool = False) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor inside a transaction; commit on success, roll back on error.

        ``immediate`` takes the write lock up front, for read-modify-write updates.
        """
        conn = None
        try:
            conn = self._get_connection()
            if immediate:
                conn.execute("BEGIN IMMEDIATE")
            cursor = conn.cursor()
            yield cursor
            conn.commit()
        except sqlite3.IntegrityError:
            if conn:
                conn.rollback()
            raise
        except sqlite3.OperationalError as e:
            if conn:
                conn.rollback()
            if "locked" in str(e) or "busy" in str(e):
                raise StorageTimeoutError(f"Record store busy: {e}") from e
            raise StorageUnavailableError(f"Record store error: {e}") from e
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            raise StorageUnavailableError(f"Record store error: {e}") from e
        finally:
            if conn:
                conn.close()

    def _validate_document(self, document: Dict[str, Any]) -> None:
        """Validate document against schema"""
        try:
            DOCUMENT_VALIDATORS[FILE_COLLECTION](document)
        except Exception as e:
            logger.error(f"Document validation failed for {FILE_COLLECTION}: {e}")
            raise ValueError(f"Document validation failed: {e}")

    def _serialize_document(self, document: Dict[str, Any]) -> str:
        """Serialize document to JSON string"""
        def json_serializer(obj):
            if isinstance(obj, datetime):
                return obj.isoformat()
            raise TypeError(f"Object of type {type(obj)} is not JSON serializable")

        return json.dumps(document, default=json_serializer)

    def _deserialize_document(self, json_str: str) -> Dict[str, Any]:
        """Deserialize JSON string to document"""
        return json.loads(json_str)

    def init_collections(self) -> None:
        """Initialize the files collection (table) and its indexes"""
        with self._transaction() as cursor:
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS files_docs (
                    file_id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    shareable_link TEXT UNIQUE,
                    document TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')
            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_files_owner_id
                ON files_docs(owner_id)
            ''')
            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_files_created_at
                ON files_docs(json_extract(document, '$.created_at'))
            ''')
        logger.info("NoSQL collections initialized successfully")

    def create_file(self, document: Dict[str, Any]) -> str:
        """Insert a new file record and return its id"""
        self._validate_document(document)
        doc_json = self._serialize_document(document)
        try:
            with self._transaction() as cursor:
                cursor.execute('''
                    INSERT INTO files_docs (file_id, owner_id, shareable_link, document)
                    VALUES (?, ?, ?, ?)
                ''', (document['file_id'], document['owner_id'], document.get('shareable_link'), doc_json))
        except sqlite3.IntegrityError as e:
            logger.error(f"Error creating file document {document['file_id']}: {e}")
            raise StorageUnavailableError(f"Could not create file record: {e}") from e
        logger.info(f"Created document in {FILE_COLLECTION} with ID: {document['file_id']}")
        return document['file_id']

    def get_file(self, file_id: str) -> Optional[Dict[str, Any]]:
        """Get a file record by id"""
        with self._transaction() as cursor:
            cursor.execute('SELECT document FROM files_docs WHERE file_id = ?', (file_id,))
            row = cursor.fetchone()
        return self._deserialize_document(row['document']) if row else None

    def find_owned_file(self, owner_id: str, file_id: str) -> Optional[Dict[str, Any]]:
        """Get a file record only when it belongs to owner_id"""
        with self._transaction() as cursor:
            cursor.execute(
                'SELECT document FROM files_docs WHERE file_id = ? AND owner_id = ?',
                (file_id, owner_id),
            )
            row = cursor.fetchone()
        return self._deserialize_document(row['document']) if row else None

    def find_by_link(self, link: str) -> Optional[Dict[str, Any]]:
        with self._transaction() as cursor:
            cursor.execute('SELECT document FROM files_docs WHERE shareable_link = ?', (link,))
            row = cursor.fetchone()
        return self._deserialize_document(row['document']) if row else None

    def list_files(self, owner_id: str) -> List[Dict[str, Any]]:
        """All records of one owner, oldest first"""
        with self._transaction() as cursor:
            cursor.execute('''
                SELECT document FROM files_docs
                WHERE owner_id = ?
                ORDER BY json_extract(document, '$.created_at'), file_id
            ''', (owner_id,))
            rows = cursor.fetchall()
        return [self._deserialize_document(row['document']) for row in rows]

    def increment_views(self, file_id: str) -> Optional[int]:
        """Atomically add one to view_count; returns the new count or None if absent"""
        with self._transaction() as cursor:
            cursor.execute('''
                UPDATE files_docs
                SET document = json_set(document, '$.view_count',
                                        json_extract(document, '$.view_count') + 1),
                    updated_at = CURRENT_TIMESTAMP
                WHERE file_id = ?
            ''', (file_id,))
            if cursor.rowcount == 0:
                return None
            cursor.execute(
                "SELECT json_extract(document, '$.view_count') AS view_count FROM files_docs WHERE file_id = ?",
                (file_id,),
            )
            view_count = cursor.fetchone()['view_count']
        logger.info(f"Incremented views for {file_id} to {view_count}")
        return view_count

    def assign_link(self, file_id: str, link: str) -> Optional[str]:
        """Set the shareable link only if none exists yet.

        Returns the link stored after the call (the existing one when another
        caller got there first), or None when the record does not exist.
        """
        try:
            with self._transaction() as cursor:
                cursor.execute('''
                    UPDATE files_docs
                    SET shareable_link = ?,
                        document = json_set(document, '$.shareable_link', ?),
                        updated_at = CURRENT_TIMESTAMP
                    WHERE file_id = ? AND shareable_link IS NULL
                ''', (link, link, file_id))
                cursor.execute('SELECT shareable_link FROM files_docs WHERE file_id = ?', (file_id,))
                row = cursor.fetchone()
        except sqlite3.IntegrityError as e:
            logger.warning(f"Shareable link collision while sharing {file_id}")
            raise LinkCollisionError(link) from e
        if row is None:
            return None
        if row['shareable_link'] == link:
            logger.info(f"Assigned shareable link to {file_id}")
        return row['shareable_link']

    def add_tags(self, file_id: str, tags: List[str]) -> Optional[Dict[str, Any]]:
        """Union tags into the record under the write lock"""
        with self._transaction(immediate=True) as cursor:
            cursor.execute('SELECT document FROM files_docs WHERE file_id = ?', (file_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            document = self._deserialize_document(row['document'])
            document['tags'] = merge_tags(document.get('tags', []), tags)
            self._validate_document(document)
            cursor.execute('''
                UPDATE files_docs
                SET document = ?, updated_at = CURRENT_TIMESTAMP
                WHERE file_id = ?
            ''', (self._serialize_document(document), file_id))
        logger.info(f"Updated tags for {file_id}: {document['tags']}")
        return document

    def delete_file(self, file_id: str) -> bool:
        """Delete a record by id"""
        with self._transaction() as cursor:
            cursor.execute('DELETE FROM files_docs WHERE file_id = ?', (file_id,))
            success = cursor.rowcount > 0

        if success:
            logger.info(f"Deleted document from {FILE_COLLECTION} with ID: {file_id}")
        else:
            logger.warning(f"No document found to delete in {FILE_COLLECTION} with ID: {file_id}")
        return success

    def ping(self) -> bool:
        with self._transaction() as cursor:
            cursor.execute('SELECT 1')
        return True

    def close(self) -> None:
        """Connections are per operation; nothing to release."""
