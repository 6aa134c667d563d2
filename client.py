"""Client-side data layer: the ``posts`` query and ``addPost`` mutation over HTTP.

``PostsQuery`` exposes the list as an explicit ``PostsState`` (loading, data,
error) and ``AddPost`` is the mutation trigger; it re-issues the ``posts``
query after every successful mutation instead of patching local state.
"""

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from errors import ERRORS_BY_CODE, NetworkError, OperationError, PostError
from schemas import PostResponse

logger = structlog.get_logger(__name__)

POSTS_QUERY = """
query Posts {
  posts {
    id
    title
    content
  }
}
"""

ADD_POST_MUTATION = """
mutation AddPost($title: String!, $content: String!) {
  addPost(title: $title, content: $content) {
    id
    title
    content
  }
}
"""


def error_from_payload(error: dict[str, Any]) -> PostError:
    message = error.get("message") or "GraphQL operation failed"
    code = (error.get("extensions") or {}).get("code")
    return ERRORS_BY_CODE.get(code, OperationError)(message)


class GraphQLClient:
    def __init__(self, http: httpx.AsyncClient, url: str):
        self.http = http
        self.url = url

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run one operation and return its ``data``.

        Raises ``NetworkError`` when the API cannot be reached or answers with
        something that is not a GraphQL response, and the matching ``PostError``
        subclass when the response carries errors.
        """
        body: dict[str, Any] = {"query": query}
        if variables is not None:
            body["variables"] = variables

        try:
            response = await self.http.post(self.url, json=body)
        except httpx.TransportError as exc:
            logger.warning("GraphQL request failed", url=self.url, error=repr(exc))
            raise NetworkError(f"Could not reach the posts API at {self.url}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Unexpected response from posts API", url=self.url, status=response.status_code)
            raise NetworkError(
                f"Posts API answered {response.status_code} without a GraphQL response"
            ) from exc

        if not isinstance(payload, dict):
            raise NetworkError(f"Posts API answered {response.status_code} without a GraphQL response")

        errors = payload.get("errors")
        if errors:
            raise error_from_payload(errors[0])

        if response.is_error or payload.get("data") is None:
            raise NetworkError(f"Posts API answered {response.status_code} without data")

        return payload["data"]


@dataclass
class PostsState:
    loading: bool = True
    data: list[PostResponse] | None = None
    error: PostError | None = None


class PostsQuery:
    def __init__(self, client: GraphQLClient):
        self.client = client
        self.state = PostsState()

    async def fetch(self) -> PostsState:
        self.state = PostsState(loading=True)
        try:
            data = await self.client.execute(POSTS_QUERY)
        except PostError as exc:
            self.state = PostsState(loading=False, error=exc)
        else:
            posts = [PostResponse.model_validate(post) for post in data.get("posts") or []]
            self.state = PostsState(loading=False, data=posts)
        return self.state

    refetch = fetch


class AddPost:
    """Mutation trigger. Re-issues ``posts_query`` after a successful ``addPost``.

    Pass no query when the caller reloads the list some other way, such as a
    redirect to the page that fetches it.
    """

    def __init__(self, client: GraphQLClient, posts_query: PostsQuery | None = None):
        self.client = client
        self.posts_query = posts_query

    async def __call__(self, title: str, content: str) -> PostResponse:
        data = await self.client.execute(ADD_POST_MUTATION, {"title": title, "content": content})
        post = PostResponse.model_validate(data["addPost"])
        if self.posts_query is not None:
            await self.posts_query.refetch()
        return post
