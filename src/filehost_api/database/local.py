import logging
from typing import Union

from filehost_api.database.mongo_adapter import MongoAdapter
from filehost_api.database.nosql_adapter import NoSQLAdapter
from filehost_api.settings import Settings

logger = logging.getLogger(__name__)

RecordStore = Union[NoSQLAdapter, MongoAdapter]


def get_record_store(settings: Settings) -> RecordStore:
    """MongoDB when a connection string is configured, SQLite documents otherwise"""
    if settings.mongodb_uri:
        return MongoAdapter(
            settings.mongodb_uri,
            database=settings.mongodb_database,
            timeout=settings.record_store_timeout_seconds,
        )
    return NoSQLAdapter(settings.sqlite_db_path, timeout=settings.record_store_timeout_seconds)


def init_db(settings: Settings) -> RecordStore:
    """Initialize the record store collections and indexes."""
    store = get_record_store(settings)
    store.init_collections()
    logger.info(f"Record store ready ({settings.record_store_backend})")
    return store
