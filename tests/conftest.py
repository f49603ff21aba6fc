import pytest

TOKEN_ENV_VARS = (
    "MCP_JWT_SECRET",
    "TOKEN_SUBJECT",
    "TOKEN_ROLE",
    "TOKEN_EXPIRY",
    "LOG_LEVEL",
)

SECRET = "01234567890123456789012345678901"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Start every test from an empty token environment and no .env file."""

    for name in TOKEN_ENV_VARS:
        # setenv first so monkeypatch restores the original state afterwards
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture
def secret(monkeypatch):
    monkeypatch.setenv("MCP_JWT_SECRET", SECRET)
    return SECRET
