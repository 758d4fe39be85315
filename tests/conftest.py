import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from portal_api.adapters.connection import StorageConnection
from portal_api.gateway import StorageGateway
from portal_api.main import create_app
from portal_api.settings import Settings, get_settings
from tests.consts import TEST_REGION


@pytest.fixture
def mocked_aws(monkeypatch):
    """Fake credentials and an in-memory DynamoDB, S3 and SQS for one test."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_REGION)
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)
    with mock_aws():
        yield


@pytest.fixture
def connection(tmp_path) -> StorageConnection:
    return StorageConnection(region=TEST_REGION, file_share_root=tmp_path / "shares")


@pytest.fixture
def gateway(mocked_aws, connection) -> StorageGateway:
    return StorageGateway.from_connection(connection)


@pytest.fixture
def settings() -> Settings:
    return Settings(storage_connection_string=f"Region={TEST_REGION}", log_level="debug")


@pytest.fixture
def client(settings, gateway) -> TestClient:
    app = create_app(settings=settings, gateway=gateway)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def no_sleep(monkeypatch):
    """Record retry delays instead of sleeping through them."""
    delays = []

    async def fake_async_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("portal_api.utils.decorators.time.sleep", delays.append)
    monkeypatch.setattr("portal_api.utils.decorators.asyncio.sleep", fake_async_sleep)
    return delays


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    for name in ("STORAGE_CONNECTION_STRING", "LOG_LEVEL", "APP_NAME", "CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
