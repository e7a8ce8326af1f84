"""Tests for environment and credential loading."""
import os

import pytest

from driveup.config import Credentials, load_env_file, resolve_env_file
from driveup.errors import ConfigError

REQUIRED = ("TENANT_ID", "CLIENT_ID", "CLIENT_SECRET", "USER_ID")


@pytest.fixture
def clean_env(monkeypatch):
    for name in REQUIRED + ("DRIVEUP_ENV_FILE",):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_load_env_file(tmp_path, clean_env):
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "# app registration",
                "TENANT_ID=tenant-1",
                "CLIENT_ID='client-1'",
                'export CLIENT_SECRET="s3cr=t"',
                "not a pair",
                "USER_ID=user@example.com",
            ]
        ),
        encoding="utf-8",
    )

    load_env_file(env_path)

    assert os.environ["TENANT_ID"] == "tenant-1"
    assert os.environ["CLIENT_ID"] == "client-1"
    assert os.environ["CLIENT_SECRET"] == "s3cr=t"
    assert os.environ["USER_ID"] == "user@example.com"


def test_load_env_file_does_not_override(tmp_path, clean_env):
    clean_env.setenv("TENANT_ID", "from-shell")
    env_path = tmp_path / ".env"
    env_path.write_text("TENANT_ID=from-file\n", encoding="utf-8")

    load_env_file(env_path)
    assert os.environ["TENANT_ID"] == "from-shell"

    load_env_file(env_path, override=True)
    assert os.environ["TENANT_ID"] == "from-file"


def test_load_env_file_missing(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_env_file(tmp_path / "missing.env")


def test_resolve_env_file_prefers_explicit(tmp_path, clean_env):
    explicit = tmp_path / "custom.env"
    clean_env.setenv("DRIVEUP_ENV_FILE", str(explicit))
    assert resolve_env_file() == explicit


def test_resolve_env_file_uses_cwd(tmp_path, clean_env):
    (tmp_path / ".env").write_text("", encoding="utf-8")
    clean_env.chdir(tmp_path)
    assert resolve_env_file().resolve() == (tmp_path / ".env").resolve()


def test_credentials_from_env(clean_env):
    for name in REQUIRED:
        clean_env.setenv(name, name.lower())
    clean_env.setenv("CLIENT_SECRET", "hunter2")

    credentials = Credentials.from_env()

    assert credentials.tenant_id == "tenant_id"
    assert credentials.user_id == "user_id"
    assert credentials.client_secret == "hunter2"
    assert "hunter2" not in repr(credentials)
    assert "***" in repr(credentials)


def test_credentials_missing_names_every_variable(clean_env):
    clean_env.setenv("TENANT_ID", "t")
    clean_env.setenv("CLIENT_ID", "c")

    with pytest.raises(ConfigError) as excinfo:
        Credentials.from_env()

    assert "CLIENT_SECRET" in str(excinfo.value)
    assert "USER_ID" in str(excinfo.value)
    assert "TENANT_ID" not in str(excinfo.value)
