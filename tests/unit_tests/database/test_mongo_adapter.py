"""
Call-contract tests for the MongoDB adapter, using a mocked client.
"""

from unittest.mock import MagicMock

import pytest
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, OperationFailure, ServerSelectionTimeoutError

from filehost_api.database.mongo_adapter import MongoAdapter
from filehost_api.errors import LinkCollisionError, StorageTimeoutError, StorageUnavailableError
from tests.consts import TEST_OWNER_ID
from tests.fixtures.file_fixtures import make_file_document

FILE_ID = "0123456789abcdef01234567"


@pytest.fixture
def adapter() -> MongoAdapter:
    adapter = MongoAdapter("mongodb://localhost:27017", database="filehost_test", client=MagicMock())
    adapter.collection = MagicMock()
    return adapter


def test_requires_connection_string():
    with pytest.raises(ValueError):
        MongoAdapter("")


def test_init_collections_creates_unique_partial_link_index(adapter):
    adapter.init_collections()

    calls = adapter.collection.create_index.call_args_list
    link_call = next(call for call in calls if call.args[0] == [("shareable_link", 1)])
    assert link_call.kwargs["unique"] is True
    assert link_call.kwargs["partialFilterExpression"] == {"shareable_link": {"$type": "string"}}


def test_create_file_inserts_validated_document(adapter):
    document = make_file_document(TEST_OWNER_ID)
    assert adapter.create_file(document) == document["file_id"]
    adapter.collection.insert_one.assert_called_once()
    assert "_id" not in document


def test_create_file_rejects_invalid_document(adapter):
    with pytest.raises(ValueError):
        adapter.create_file(make_file_document(TEST_OWNER_ID, tags=["dup", "dup"]))
    adapter.collection.insert_one.assert_not_called()


def test_get_file_strips_mongo_id(adapter):
    adapter.collection.find_one.return_value = {"_id": "oid", "file_id": FILE_ID}
    assert adapter.get_file(FILE_ID) == {"file_id": FILE_ID}


def test_find_owned_file_filters_on_owner(adapter):
    adapter.collection.find_one.return_value = None
    assert adapter.find_owned_file(TEST_OWNER_ID, FILE_ID) is None
    adapter.collection.find_one.assert_called_once_with({"file_id": FILE_ID, "owner_id": TEST_OWNER_ID})


def test_increment_views_uses_inc(adapter):
    adapter.collection.find_one_and_update.return_value = {"view_count": 3}

    assert adapter.increment_views(FILE_ID) == 3
    args, kwargs = adapter.collection.find_one_and_update.call_args
    assert args == ({"file_id": FILE_ID}, {"$inc": {"view_count": 1}})
    assert kwargs["return_document"] == ReturnDocument.AFTER


def test_increment_views_on_missing_record(adapter):
    adapter.collection.find_one_and_update.return_value = None
    assert adapter.increment_views(FILE_ID) is None


def test_assign_link_is_compare_and_set(adapter):
    adapter.collection.find_one_and_update.return_value = {"shareable_link": "a" * 64}

    assert adapter.assign_link(FILE_ID, "a" * 64) == "a" * 64
    args, _ = adapter.collection.find_one_and_update.call_args
    assert args[0] == {"file_id": FILE_ID, "shareable_link": None}
    assert args[1] == {"$set": {"shareable_link": "a" * 64}}


def test_assign_link_returns_existing_link(adapter):
    adapter.collection.find_one_and_update.return_value = None
    adapter.collection.find_one.return_value = {"shareable_link": "e" * 64}
    assert adapter.assign_link(FILE_ID, "a" * 64) == "e" * 64


def test_assign_link_duplicate_key_is_a_collision(adapter):
    adapter.collection.find_one_and_update.side_effect = DuplicateKeyError("E11000 duplicate key")
    with pytest.raises(LinkCollisionError):
        adapter.assign_link(FILE_ID, "a" * 64)


def test_add_tags_uses_add_to_set_each(adapter):
    adapter.collection.find_one_and_update.return_value = {"_id": "oid", "file_id": FILE_ID, "tags": ["a", "b"]}

    assert adapter.add_tags(FILE_ID, ["b"]) == {"file_id": FILE_ID, "tags": ["a", "b"]}
    args, _ = adapter.collection.find_one_and_update.call_args
    assert args[1] == {"$addToSet": {"tags": {"$each": ["b"]}}}


def test_delete_file(adapter):
    adapter.collection.delete_one.return_value = MagicMock(deleted_count=1)
    assert adapter.delete_file(FILE_ID) is True
    adapter.collection.delete_one.return_value = MagicMock(deleted_count=0)
    assert adapter.delete_file(FILE_ID) is False


def test_timeouts_are_translated(adapter):
    adapter.collection.find_one.side_effect = ServerSelectionTimeoutError("no servers")
    with pytest.raises(StorageTimeoutError):
        adapter.get_file(FILE_ID)


def test_other_driver_errors_are_translated(adapter):
    adapter.collection.find.side_effect = OperationFailure("not authorized")
    with pytest.raises(StorageUnavailableError):
        adapter.list_files(TEST_OWNER_ID)
