"""Shared fixtures: stores, the API app and the web app wired together in process."""

import httpx
import pytest

import main
import web
from config import Settings
from errors import StorageUnavailable
from schemas import PostCreate, PostResponse
from store import InMemoryPostStore, PostStore, SQLPostStore

API_URL = "http://api.test/graphql"


class UnavailablePostStore(PostStore):
    """Store whose backend is unreachable."""

    async def list(self) -> list[PostResponse]:
        raise StorageUnavailable("post storage is unavailable")

    async def _insert(self, post: PostCreate) -> PostResponse:
        raise StorageUnavailable("post storage is unavailable")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        store_backend="memory",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'posts.db'}",
        api_url=API_URL,
        _env_file=None,
    )


@pytest.fixture
def memory_store():
    return InMemoryPostStore()


@pytest.fixture
async def sql_store(tmp_path):
    store = SQLPostStore(f"sqlite+aiosqlite:///{tmp_path / 'posts.db'}")
    await store.open()
    yield store
    await store.close()


@pytest.fixture(params=["memory", "sql"])
async def store(request, tmp_path):
    if request.param == "memory":
        yield InMemoryPostStore()
        return
    sql = SQLPostStore(f"sqlite+aiosqlite:///{tmp_path / 'posts.db'}")
    await sql.open()
    yield sql
    await sql.close()


@pytest.fixture
def api_app(settings, memory_store):
    return main.create_app(settings, store=memory_store)


@pytest.fixture
async def api_http(api_app):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=api_app), base_url="http://api.test"
    ) as http:
        yield http


@pytest.fixture
def web_app(settings, api_http):
    return web.create_app(settings, http_client=api_http)


@pytest.fixture
async def web_http(web_app):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=web_app), base_url="http://web.test"
    ) as http:
        yield http


@pytest.fixture
def unavailable_store():
    return UnavailablePostStore()
