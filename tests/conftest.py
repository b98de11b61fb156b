"""Root test configuration: keep tests independent of the caller's environment"""

import os

import pytest


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Drop any MDBLOCKS_* variables inherited from the shell running the tests."""
    for name in list(os.environ):
        if name.startswith("MDBLOCKS_"):
            monkeypatch.delenv(name, raising=False)
