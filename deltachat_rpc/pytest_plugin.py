"""pytest plugin providing an ``acfactory`` fixture.

Enable it from a ``conftest.py``:

    pytest_plugins = ["deltachat_rpc.pytest_plugin"]

Tests marked ``online`` need ``deltachat-rpc-server`` on PATH and a test mail
server; they are skipped unless ``DC_TEST_ONLINE`` is set.
"""

import os
import shutil

import pytest

from deltachat_rpc.acfactory import AcFactory
from deltachat_rpc.utils.config import get_config

ONLINE_ENV = "DC_TEST_ONLINE"


def online_available() -> bool:
    """Return True when online tests can talk to a real server."""
    server_path = get_config().config.transport.server_path
    return bool(os.environ.get(ONLINE_ENV)) and shutil.which(server_path) is not None


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "online: needs deltachat-rpc-server and a test mail server"
    )


def pytest_collection_modifyitems(config, items):
    if online_available():
        return

    skip_online = pytest.mark.skip(
        reason=f"set {ONLINE_ENV}=1 and install deltachat-rpc-server to run online tests"
    )
    for item in items:
        if "online" in item.keywords:
            item.add_marker(skip_online)


@pytest.fixture(scope="session")
def acfactory():
    """Session-wide AcFactory; temporary account files are removed at the end."""
    factory = AcFactory(debug=bool(os.environ.get("DC_TEST_DEBUG")))
    factory.tear_up()
    yield factory
    factory.tear_down()
