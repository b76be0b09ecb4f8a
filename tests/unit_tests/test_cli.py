import pytest
from click.testing import CliRunner

from filehost_api.auth import CredentialVerifier
from filehost_api.cli import cli
from filehost_api.settings import get_settings
from tests.consts import TEST_JWT_SECRET, TEST_OWNER_ID


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("DEPLOYMENT_MODE", "local-dev")
    monkeypatch.setenv("SQLITE_DB_PATH", str(tmp_path / "cli.db"))
    monkeypatch.setenv("STORAGE_DIR", str(tmp_path / "storage"))
    monkeypatch.setenv("JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.delenv("MONGODB_URI", raising=False)
    get_settings.cache_clear()
    yield CliRunner()
    get_settings.cache_clear()


def test_show_config_hides_secrets(runner):
    result = runner.invoke(cli, ["show-config"])

    assert result.exit_code == 0
    assert "deployment_mode: local-dev" in result.output
    assert "record_store: sqlite" in result.output
    assert TEST_JWT_SECRET not in result.output


def test_init_db_creates_database(runner, tmp_path):
    result = runner.invoke(cli, ["init-db"])

    assert result.exit_code == 0
    assert "sqlite" in result.output
    assert (tmp_path / "cli.db").exists()


def test_issue_token_is_accepted_by_verifier(runner):
    result = runner.invoke(cli, ["issue-token", "--owner-id", TEST_OWNER_ID, "--expires-minutes", "5"])

    assert result.exit_code == 0
    token = result.output.strip()
    assert CredentialVerifier(TEST_JWT_SECRET).verify(token) == TEST_OWNER_ID


def test_issue_token_requires_owner(runner):
    result = runner.invoke(cli, ["issue-token"])
    assert result.exit_code != 0
    assert "--owner-id" in result.output


def test_serve_runs_uvicorn(runner, monkeypatch):
    calls = {}

    def fake_run(app, host, port):
        calls.update(app=app, host=host, port=port)

    monkeypatch.setattr("uvicorn.run", fake_run)
    result = runner.invoke(cli, ["serve", "--host", "127.0.0.1", "--port", "9000"])

    assert result.exit_code == 0, result.output
    assert calls["host"] == "127.0.0.1"
    assert calls["port"] == 9000
    assert calls["app"].title == "File Hosting API"
