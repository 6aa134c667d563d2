"""GraphQL schema for posts and the contract it is checked against at startup."""

from typing import cast

import strawberry
from graphql import GraphQLObjectType, build_schema, find_breaking_changes
from strawberry.types import Info

from errors import SchemaMismatch
from schemas import PostResponse
from store import PostStore

CONTRACT_SDL = """
type Post {
  id: ID
  title: String
  content: String
}

type Query {
  posts: [Post]
}

type Mutation {
  addPost(title: String!, content: String!): Post
}
"""


@strawberry.type
class Post:
    id: strawberry.ID
    title: str
    content: str

    @classmethod
    def from_record(cls, record: PostResponse) -> "Post":
        return cls(id=strawberry.ID(record.id), title=record.title, content=record.content)


def get_store(info: Info) -> PostStore:
    return info.context["store"]


@strawberry.type
class Query:
    @strawberry.field(description="All posts, oldest first.")
    async def posts(self, info: Info) -> list[Post]:
        records = await get_store(info).list()
        return [Post.from_record(record) for record in records]


@strawberry.type
class Mutation:
    @strawberry.mutation(description="Create a post and return it with its id.")
    async def add_post(self, info: Info, title: str, content: str) -> Post | None:
        record = await get_store(info).create(title, content)
        return Post.from_record(record)


schema = strawberry.Schema(query=Query, mutation=Mutation)


def check_schema(candidate: strawberry.Schema, contract_sdl: str = CONTRACT_SDL) -> None:
    """Raise ``SchemaMismatch`` unless ``candidate`` serves exactly the contract's operations.

    Output types may be stricter than the contract (non-null where it is
    nullable); root fields and argument types must match exactly.
    """
    contract = build_schema(contract_sdl)
    actual = build_schema(candidate.as_str())

    problems = [change.description for change in find_breaking_changes(contract, actual)]

    for root in ("Query", "Mutation"):
        expected = cast(GraphQLObjectType, contract.get_type(root))
        found = actual.get_type(root)
        if not isinstance(found, GraphQLObjectType):
            problems.append(f"{root} type is missing.")
            continue

        for name in sorted(set(found.fields) - set(expected.fields)):
            problems.append(f"{root}.{name} is not part of the contract.")

        for name, field in expected.fields.items():
            if name not in found.fields:
                continue
            found_args = found.fields[name].args
            for arg_name in sorted(set(found_args) - set(field.args)):
                problems.append(f"{root}.{name}({arg_name}) is not part of the contract.")
            for arg_name, arg in field.args.items():
                if arg_name in found_args and str(found_args[arg_name].type) != str(arg.type):
                    problems.append(
                        f"{root}.{name}({arg_name}) is {found_args[arg_name].type}, "
                        f"expected {arg.type}."
                    )

    if problems:
        raise SchemaMismatch(problems)
