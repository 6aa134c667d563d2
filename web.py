from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated

import httpx
import structlog
import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Form, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from client import AddPost, GraphQLClient, PostsQuery, PostsState
from config import Settings, get_settings
from errors import PostError
from logging_setup import configure_logging

logger = structlog.get_logger(__name__)

BASE_DIR = Path(__file__).resolve().parent

templates = Jinja2Templates(directory=BASE_DIR / "templates")

router = APIRouter()


def get_graphql_client(request: Request) -> GraphQLClient:
    return GraphQLClient(request.app.state.http_client, request.app.state.settings.api_url)


def render_home(
    request: Request,
    state: PostsState,
    form_values: dict[str, str] | None = None,
    form_error: PostError | None = None,
):
    status_code = status.HTTP_200_OK
    if form_error is not None:
        status_code = form_error.http_status
    elif state.error is not None:
        status_code = state.error.http_status

    return templates.TemplateResponse(
        request,
        "home.html",
        {
            "title": "Posts",
            "state": state,
            "form_values": form_values or {},
            "form_error": form_error,
        },
        status_code=status_code,
    )


@router.get("/", include_in_schema=False, name="home")
async def home(request: Request, client: Annotated[GraphQLClient, Depends(get_graphql_client)]):
    state = await PostsQuery(client).fetch()
    return render_home(request, state)


@router.post("/", include_in_schema=False, name="add_post")
async def add_post(
    request: Request,
    client: Annotated[GraphQLClient, Depends(get_graphql_client)],
    title: Annotated[str, Form()] = "",
    content: Annotated[str, Form()] = "",
):
    try:
        await AddPost(client)(title, content)
    except PostError as exc:
        logger.warning("Post submission failed", code=exc.code, error=exc.message)
        state = await PostsQuery(client).fetch()
        return render_home(
            request,
            state,
            form_values={"title": title, "content": content},
            form_error=exc,
        )
    return RedirectResponse(request.url_for("home"), status_code=status.HTTP_303_SEE_OTHER)


async def general_http_exception_handler(request: Request, exception: StarletteHTTPException):
    message = (
        exception.detail
        if exception.detail
        else "An error occurred. Please check your request and try again."
    )

    return templates.TemplateResponse(
        request,
        "error.html",
        {
            "status_code": exception.status_code,
            "title": exception.status_code,
            "message": message,
        },
        status_code=exception.status_code,
    )


async def validation_exception_handler(request: Request, exception: RequestValidationError):
    return templates.TemplateResponse(
        request,
        "error.html",
        {
            "status_code": status.HTTP_422_UNPROCESSABLE_CONTENT,
            "title": status.HTTP_422_UNPROCESSABLE_CONTENT,
            "message": "Invalid request. Please check your input and try again",
        },
        status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
    )


def create_app(settings: Settings | None = None, http_client: httpx.AsyncClient | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_client = app.state.http_client is None
        if owns_client:
            app.state.http_client = httpx.AsyncClient(timeout=settings.client_timeout)
        logger.info("Web frontend ready", api_url=settings.api_url)
        yield
        if owns_client:
            await app.state.http_client.aclose()
            app.state.http_client = None

    app = FastAPI(
        title=f"{settings.app_name} web",
        lifespan=lifespan,
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.http_client = http_client

    app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")
    app.include_router(router)
    app.add_exception_handler(StarletteHTTPException, general_http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    uvicorn.run("web:app", host=settings.web_host, port=settings.web_port, log_config=None)


if __name__ == "__main__":
    run()
