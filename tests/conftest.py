import pytest
from fastapi.testclient import TestClient

from opendraw.services.grok.app import app as grok_app
from opendraw.services.jimeng.app import app as jimeng_app


@pytest.fixture
def grok_client():
    return TestClient(grok_app)


@pytest.fixture
def jimeng_client():
    return TestClient(jimeng_app)
