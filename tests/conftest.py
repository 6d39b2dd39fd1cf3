import pytest

from blob_proxy.env import env_class
from blob_proxy.proxy import create_app
from tests.fakes import FakeFetcher, make_upstream


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "BLOB_PROXY_CACHE_TTL",
        "BLOB_PROXY_UPSTREAM_HOST",
        "BLOB_PROXY_HOST",
        "BLOB_PROXY_PORT",
        "BLOB_PROXY_TIMEOUT",
        "BLOB_PROXY_CHUNK_SIZE",
        "BLOB_PROXY_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fetcher():
    return FakeFetcher(upstream=make_upstream(b"hello\n"))


@pytest.fixture
def client(fetcher):
    app = create_app(env_class(), fetcher)
    app.testing = True
    return app.test_client()
