import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from filehost_api.adapters.storage import LocalBlobStore
from filehost_api.database.nosql_adapter import NoSQLAdapter
from filehost_api.db_layer.file_service import FileService
from filehost_api.main import create_app
from filehost_api.settings import Settings
from tests.consts import TEST_BUCKET_NAME, TEST_JWT_SECRET
from tests.fixtures.file_fixtures import InMemoryBlobStore


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        deployment_mode="local-dev",
        sqlite_db_path=str(tmp_path / "test_files.db"),
        storage_dir=str(tmp_path / "storage"),
        mongodb_uri=None,
        jwt_secret=TEST_JWT_SECRET,
        s3_bucket_name=TEST_BUCKET_NAME,
        log_level="DEBUG",
    )


@pytest.fixture
def client(settings) -> TestClient:
    app = create_app(settings=settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def record_store(tmp_path) -> NoSQLAdapter:
    store = NoSQLAdapter(str(tmp_path / "records.db"))
    store.init_collections()
    return store


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def local_blob_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(str(tmp_path / "blobs"))


@pytest.fixture
def file_service(record_store, blob_store) -> FileService:
    return FileService(record_store, blob_store)


@pytest.fixture
def mocked_aws(monkeypatch):
    """Fake AWS credentials plus an S3 bucket inside a moto sandbox"""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)

    with mock_aws():
        s3_client = boto3.client("s3", region_name="us-east-1")
        s3_client.create_bucket(Bucket=TEST_BUCKET_NAME)
        yield s3_client

        response = s3_client.list_objects_v2(Bucket=TEST_BUCKET_NAME)
        for obj in response.get("Contents", []):
            s3_client.delete_object(Bucket=TEST_BUCKET_NAME, Key=obj["Key"])
        s3_client.delete_bucket(Bucket=TEST_BUCKET_NAME)
