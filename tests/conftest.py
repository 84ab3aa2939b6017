"""
Shared fixtures for ceb tests.
"""

import pytest

from ceb.settings import (
    ENV_CEB_DISABLE,
    ENV_CEB_INVITE_TOKEN,
    ENV_CEB_LOG_LEVEL,
    ENV_CEB_SERVER_REQUIRED,
    ENV_DEPLOYMENT_ID,
    ENV_PORT,
    ENV_SERVER_ADDR,
    ENV_SERVER_TLS,
    ENV_SERVER_TLS_SKIP_VERIFY,
)

ENV_KEYS = [
    ENV_DEPLOYMENT_ID,
    ENV_SERVER_ADDR,
    ENV_SERVER_TLS,
    ENV_SERVER_TLS_SKIP_VERIFY,
    ENV_CEB_DISABLE,
    ENV_CEB_SERVER_REQUIRED,
    ENV_CEB_INVITE_TOKEN,
    ENV_CEB_LOG_LEVEL,
    ENV_PORT,
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Strip entrypoint env vars so the real environment doesn't leak in.

    Each key is set before being deleted so monkeypatch records the original
    state and restores it, even when the code under test exports PORT.
    """
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    yield
