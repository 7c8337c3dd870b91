"""Shared test configuration and fixtures."""

import os
from collections.abc import Iterator
from unittest.mock import patch

import pytest

import funpay_tools.core.config as config_module

_TEST_ENV_VARS = {
    "FUNPAY_GOLDEN_KEY": "test-golden-key",
    "FUNPAY_BASE_URL": "https://funpay.test",
}


@pytest.fixture(autouse=True)
def _set_test_env_vars() -> Iterator[None]:  # pyright: ignore[reportUnusedFunction]
    """Pin the FunPay env vars read by settings.yaml to harmless placeholders.

    A developer's shell or ``.env`` may hold a real session cookie; tests
    must never pick it up. The ``get_config()`` singleton is reset around
    each test so the placeholders are what it loads.
    """
    config_module._config = None
    with patch.dict(os.environ, _TEST_ENV_VARS):
        yield
    config_module._config = None
