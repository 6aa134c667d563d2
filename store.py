"""Post storage backends.

Both backends share one interface; which one the API server uses is a
configuration choice (``Settings.store_backend``):

* ``InMemoryPostStore`` keeps posts in a list owned by the instance. Posts are
  lost when the process exits.
* ``SQLPostStore`` keeps posts in the ``posts`` table of any SQLAlchemy async
  database and survives restarts.
"""

import itertools
from abc import ABC, abstractmethod

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import InterfaceError, OperationalError

import models
from config import Settings
from database import Base, create_engine, create_session_factory
from errors import StorageUnavailable, ValidationError
from schemas import PostCreate, PostResponse

logger = structlog.get_logger(__name__)

STORAGE_ERRORS = (OperationalError, InterfaceError, OSError)

DEMO_POSTS = [
    PostCreate(
        title="Post Title1",
        content="Lorem Ipsum is simply dummy text of the printing and typesetting industry.",
    ),
    PostCreate(
        title="Post Title2",
        content=(
            "Lorem Ipsum has been the industry's standard dummy text ever since the 1500s, "
            "when an unknown printer took a galley of type and scrambled it to make a type "
            "specimen book."
        ),
    ),
    PostCreate(
        title="Post Title3",
        content="Contrary to popular belief, Lorem Ipsum is not simply random text.",
    ),
]


def validate_post(title: str, content: str) -> PostCreate:
    try:
        return PostCreate(title=title, content=content)
    except PydanticValidationError as exc:
        fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
        raise ValidationError(
            f"{' and '.join(fields)} must not be empty", fields=fields
        ) from exc


class PostStore(ABC):
    """Append-only collection of posts."""

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @abstractmethod
    async def list(self) -> list[PostResponse]:
        """Return every post in insertion order."""

    async def create(self, title: str, content: str) -> PostResponse:
        """Validate and persist a new post, returning it with its assigned id.

        Raises ``ValidationError`` if either field is empty, in which case
        nothing is written.
        """
        post = await self._insert(validate_post(title, content))
        logger.info("Post created", post_id=post.id, store=type(self).__name__)
        return post

    @abstractmethod
    async def _insert(self, post: PostCreate) -> PostResponse: ...


class InMemoryPostStore(PostStore):
    def __init__(self):
        self._posts: list[PostResponse] = []
        self._ids = itertools.count(1)

    async def list(self) -> list[PostResponse]:
        return list(self._posts)

    async def _insert(self, post: PostCreate) -> PostResponse:
        # id assignment and append happen without yielding to the event loop
        record = PostResponse(id=str(next(self._ids)), **post.model_dump())
        self._posts.append(record)
        return record


class SQLPostStore(PostStore):
    def __init__(self, database_url: str):
        self.database_url = database_url
        self._engine = create_engine(database_url)
        self._sessions = create_session_factory(self._engine)

    async def open(self) -> None:
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except STORAGE_ERRORS as exc:
            logger.error("Failed to open post store", url=self._safe_url, error=str(exc))
            raise StorageUnavailable("post storage is unavailable") from exc
        logger.info("Connected to post store", url=self._safe_url)

    async def close(self) -> None:
        await self._engine.dispose()
        logger.info("Closed post store", url=self._safe_url)

    async def list(self) -> list[PostResponse]:
        try:
            async with self._sessions() as db:
                result = await db.execute(select(models.Post).order_by(models.Post.id))
                posts = result.scalars().all()
        except STORAGE_ERRORS as exc:
            logger.error("Failed to list posts", error=str(exc))
            raise StorageUnavailable("post storage is unavailable") from exc
        return [PostResponse.model_validate(post) for post in posts]

    async def _insert(self, post: PostCreate) -> PostResponse:
        new_post = models.Post(title=post.title, content=post.content)
        try:
            async with self._sessions() as db:
                db.add(new_post)
                await db.commit()
                await db.refresh(new_post)
        except STORAGE_ERRORS as exc:
            logger.error("Failed to create post", error=str(exc))
            raise StorageUnavailable("post storage is unavailable") from exc
        return PostResponse.model_validate(new_post)

    @property
    def _safe_url(self) -> str:
        return self._engine.url.render_as_string(hide_password=True)


def build_store(settings: Settings) -> PostStore:
    if settings.store_backend == "memory":
        return InMemoryPostStore()
    return SQLPostStore(settings.database_url)


async def seed_demo_posts(store: PostStore) -> int:
    """Insert ``DEMO_POSTS`` into an empty store. Returns how many were added."""
    if await store.list():
        return 0
    for post in DEMO_POSTS:
        await store.create(post.title, post.content)
    logger.info("Seeded demo posts", count=len(DEMO_POSTS))
    return len(DEMO_POSTS)
