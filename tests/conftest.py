import pytest

from netprobe import api
from netprobe.config import Settings


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def app(settings):
    app = api.create_app(
        settings,
        TESTING=True,
        RATELIMIT_ENABLED=False,
        RATELIMIT_STORAGE_URI="memory://",
    )
    yield app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c
