import base64
import json

import pytest
from click.testing import CliRunner

from interest_api.cli import cli
from interest_api.config.settings import get_settings


@pytest.fixture
def runner(monkeypatch, tmp_path):
    monkeypatch.setenv("DB_PATH", str(tmp_path / "cli.db"))
    monkeypatch.setenv("STORAGE_DIR", str(tmp_path / "storage"))
    get_settings.cache_clear()
    yield CliRunner()
    get_settings.cache_clear()


def invoke(runner, *args):
    return runner.invoke(cli, list(args))


def last_line(result):
    return json.loads(result.output.strip().splitlines()[-1])


def test_create_update_delete(runner, tmp_path):
    data = json.dumps({"name": "notes.txt", "fileData": base64.b64encode(b"hello").decode()})

    result = invoke(runner, "create", "file", "n-1", data)
    assert result.exit_code == 0, result.output
    assert last_line(result)["state"] == "committed"
    assert (tmp_path / "storage" / "1" / "user_upload" / "notes.txt").read_bytes() == b"hello"

    result = invoke(runner, "update", "file", "n-1", json.dumps({"name": "renamed.txt"}))
    assert result.exit_code == 0, result.output
    assert (tmp_path / "storage" / "1" / "user_upload" / "renamed.txt").exists()

    result = invoke(runner, "delete", "file", "n-1")
    assert result.exit_code == 0, result.output


def test_create_conflict_and_update_flag(runner):
    assert invoke(runner, "create", "article", "a-1", '{"title": "One"}').exit_code == 0

    result = invoke(runner, "create", "article", "a-1", '{"title": "Two"}')
    assert result.exit_code == 1
    assert "IdentityConflictError: " in result.output

    result = invoke(runner, "create", "--update", "article", "a-1", '{"title": "Two"}')
    assert result.exit_code == 0, result.output
    assert last_line(result)["state"] == "committed"


def test_errors_are_reported(runner):
    result = invoke(runner, "update", "article", "missing", "{}")
    assert result.exit_code == 1
    assert "NotFoundError: " in result.output

    result = invoke(runner, "create", "article", "a-1", "not json")
    assert result.exit_code == 2


def test_show_config(runner, tmp_path):
    result = invoke(runner, "show-config")

    assert result.exit_code == 0
    assert f"Database: {tmp_path / 'cli.db'}" in result.output
    assert "Upload Folder: 1:/user_upload/" in result.output
