"""
Shared test fixtures and configuration for pytest
"""
import os
import stat
import sys

import pytest

from deltachat_rpc.utils.config import TransportConfig, reset_config
from deltachat_rpc.utils.console import reset_console

from .test_helpers import FAKE_SERVER, FakeTransport, fake_server_transport

pytest_plugins = ["deltachat_rpc.pytest_plugin"]


@pytest.fixture
def transport_config():
    """Transport settings pointing at the local Python interpreter"""
    return TransportConfig(
        server_path=sys.executable,
        forward_stderr=False,
        start_timeout=10.0,
        close_timeout=2.0,
    )


@pytest.fixture
def fake_transport():
    """In-memory transport answering calls from a results table"""
    return FakeTransport()


@pytest.fixture
async def server_transport(transport_config):
    """Open transport to the fake RPC server, closed after the test"""
    transport = fake_server_transport(config=transport_config)
    await transport.open()
    yield transport
    await transport.close()


@pytest.fixture
def fake_server_bin(tmp_path):
    """Executable wrapper starting the fake RPC server, usable as server_path"""
    wrapper = tmp_path / "fake-deltachat-rpc-server"
    wrapper.write_text(f'#!/bin/sh\nexec "{sys.executable}" -u "{FAKE_SERVER}" "$@"\n')
    wrapper.chmod(wrapper.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(wrapper)


@pytest.fixture(autouse=True)
def clear_env_vars():
    """Clear client environment variables and cached singletons before each test"""
    env_vars = [
        'DC_RPC_SERVER', 'DC_ACCOUNTS_PATH', 'DC_RPC_LOG_LEVEL',
        'DC_RPC_LOG_DIR', 'DC_RPC_CONFIG',
        'DC_TEST_MAIL_SERVER', 'DC_TEST_SEND_SERVER',
        'DC_TEST_MAIL_PORT', 'DC_TEST_SEND_PORT',
    ]
    original = {}
    for var in env_vars:
        original[var] = os.environ.get(var)
        if var in os.environ:
            del os.environ[var]
    reset_config()
    reset_console()

    yield

    # Restore original environment
    for var, value in original.items():
        if value is not None:
            os.environ[var] = value
        elif var in os.environ:
            del os.environ[var]
    reset_config()
