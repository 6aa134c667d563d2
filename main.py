from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI, Request
from strawberry.fastapi import GraphQLRouter

from config import Settings, get_settings
from graphql_schema import check_schema, schema
from logging_setup import configure_logging
from store import PostStore, build_store, seed_demo_posts

logger = structlog.get_logger(__name__)


async def get_context(request: Request) -> dict[str, Any]:
    return {"store": request.app.state.store}


def create_app(settings: Settings | None = None, store: PostStore | None = None) -> FastAPI:
    settings = settings or get_settings()
    check_schema(schema)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # startup
        await app.state.store.open()
        if settings.seed_demo_posts:
            await seed_demo_posts(app.state.store)
        logger.info(
            "Server ready",
            url=f"http://{settings.host}:{settings.port}{settings.graphql_path}",
            store=settings.store_backend,
        )
        yield
        # shutdown
        await app.state.store.close()

    app = FastAPI(
        title=settings.app_name,
        lifespan=lifespan,
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.store = store if store is not None else build_store(settings)

    graphql_router = GraphQLRouter(
        schema,
        context_getter=get_context,
        graphql_ide="graphiql" if settings.graphiql else None,
        allow_queries_via_get=False,
    )
    app.include_router(graphql_router, prefix=settings.graphql_path)

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    uvicorn.run("main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
