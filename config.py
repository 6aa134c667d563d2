"""Configuration for the postboard API server and web frontend."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from ``POSTBOARD_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(env_prefix="POSTBOARD_", env_file=".env", extra="ignore")

    app_name: str = Field(default="postboard")

    # API server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=3000)
    graphql_path: str = Field(default="/graphql")
    graphiql: bool = Field(default=True)

    # Storage. "database" is durable across restarts, "memory" is lost when the process exits.
    store_backend: Literal["memory", "database"] = Field(default="database")
    database_url: str = Field(default="sqlite+aiosqlite:///./posts.db")
    seed_demo_posts: bool = Field(default=False)

    # Web frontend
    web_host: str = Field(default="127.0.0.1")
    web_port: int = Field(default=8080)
    api_url: str = Field(default="http://127.0.0.1:3000/graphql")
    client_timeout: float = Field(default=5.0)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")


@lru_cache
def get_settings() -> Settings:
    return Settings()
