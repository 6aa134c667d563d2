"""Tests for the post store backends."""

import asyncio

import pytest

from config import Settings
from errors import StorageUnavailable, ValidationError
from store import DEMO_POSTS, InMemoryPostStore, SQLPostStore, build_store, seed_demo_posts


class TestCreateAndList:
    """Test create followed by list on both backends."""

    @pytest.mark.asyncio
    async def test_empty_store_lists_nothing(self, store):
        assert await store.list() == []

    @pytest.mark.asyncio
    async def test_created_post_is_listed(self, store):
        post = await store.create("Hello", "World")

        assert post.id
        assert post.title == "Hello"
        assert post.content == "World"

        posts = await store.list()
        assert [(p.id, p.title, p.content) for p in posts] == [(post.id, "Hello", "World")]

    @pytest.mark.asyncio
    async def test_ids_are_unique_and_order_is_insertion(self, store):
        created = [await store.create(f"Title {i}", f"Body {i}") for i in range(5)]

        posts = await store.list()
        assert [p.id for p in posts] == [p.id for p in created]
        assert len({p.id for p in posts}) == 5

    @pytest.mark.asyncio
    async def test_values_are_stored_verbatim(self, store):
        await store.create("  padded title ", "line one\nline two")

        [post] = await store.list()
        assert post.title == "  padded title "
        assert post.content == "line one\nline two"

    @pytest.mark.asyncio
    async def test_list_is_stable_without_writes(self, store):
        await store.create("First", "One")
        await store.create("Second", "Two")

        assert await store.list() == await store.list()

    @pytest.mark.asyncio
    async def test_concurrent_creates_keep_every_post(self, store):
        created = await asyncio.gather(*(store.create(f"T{i}", f"B{i}") for i in range(50)))

        posts = await store.list()
        assert len(posts) == 50
        assert len({p.id for p in posts}) == 50
        assert {p.id for p in posts} == {p.id for p in created}
        assert {(p.title, p.content) for p in posts} == {(f"T{i}", f"B{i}") for i in range(50)}


class TestValidation:
    """Test that empty fields are rejected without writing."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "title, content, fields",
        [
            ("", "World", ["title"]),
            ("Hello", "", ["content"]),
            ("", "", ["content", "title"]),
            ("   ", "World", ["title"]),
        ],
    )
    async def test_empty_field_rejected(self, store, title, content, fields):
        await store.create("Existing", "Post")
        before = await store.list()

        with pytest.raises(ValidationError) as exc_info:
            await store.create(title, content)

        assert exc_info.value.fields == fields
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert await store.list() == before


class TestSQLPostStore:
    """Test the durable backend."""

    @pytest.mark.asyncio
    async def test_posts_survive_reopen(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'durable.db'}"

        first = SQLPostStore(url)
        await first.open()
        created = await first.create("Hello", "World")
        await first.close()

        second = SQLPostStore(url)
        await second.open()
        try:
            posts = await second.list()
        finally:
            await second.close()

        assert [(p.id, p.title, p.content) for p in posts] == [(created.id, "Hello", "World")]

    @pytest.mark.asyncio
    async def test_unreachable_database(self, tmp_path):
        store = SQLPostStore(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'posts.db'}")

        with pytest.raises(StorageUnavailable):
            await store.open()
        with pytest.raises(StorageUnavailable):
            await store.list()
        with pytest.raises(StorageUnavailable):
            await store.create("Hello", "World")

        await store.close()

    @pytest.mark.asyncio
    async def test_validation_happens_before_storage(self, tmp_path):
        store = SQLPostStore(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'posts.db'}")

        with pytest.raises(ValidationError):
            await store.create("", "World")

        await store.close()


class TestBuildStore:
    """Test backend selection from settings."""

    def test_memory_backend(self):
        store = build_store(Settings(store_backend="memory", _env_file=None))
        assert isinstance(store, InMemoryPostStore)

    def test_database_backend(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'posts.db'}"
        store = build_store(Settings(store_backend="database", database_url=url, _env_file=None))
        assert isinstance(store, SQLPostStore)
        assert store.database_url == url


class TestSeedDemoPosts:
    """Test seeding the sample posts."""

    @pytest.mark.asyncio
    async def test_seeds_empty_store(self, memory_store):
        assert await seed_demo_posts(memory_store) == len(DEMO_POSTS)

        posts = await memory_store.list()
        assert [p.title for p in posts] == [p.title for p in DEMO_POSTS]

    @pytest.mark.asyncio
    async def test_leaves_existing_posts_alone(self, memory_store):
        await memory_store.create("Mine", "Already here")

        assert await seed_demo_posts(memory_store) == 0
        assert len(await memory_store.list()) == 1
