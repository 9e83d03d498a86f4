"""
repostore Configuration

We read configuration from 2 sources, in order of precedence (higher is more priority)
- Environment variables
- A .env file, either in the current working directory or in a location specified
  by the REPOSTORE_ENV_FILE environment variable
"""

import functools
from pathlib import Path
from typing import Annotated, Any

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "repostore_"

MAX_FILE_BYTES = 25 * 1024 * 1024  # 25 MB
PHOTO_CACHE_TTL_SECONDS = 5 * 60


class Settings(BaseSettings):
    env_file: Annotated[
        Path,
        Field(
            description="Location of a .env file (if used) relative to working directory",
        ),
    ] = Path(".env")

    github_api_url: Annotated[
        str,
        Field(
            description="Base URL of the GitHub REST API",
        ),
    ] = "https://api.github.com"

    github_raw_url: Annotated[
        str,
        Field(
            description="Base URL used to build externally servable links to stored files",
        ),
    ] = "https://raw.githubusercontent.com"

    github_owner: Annotated[
        str | None,
        Field(
            description="GitHub user or organization owning the storage repositories",
        ),
    ] = None

    github_token: Annotated[
        str | None,
        Field(
            description="Personal access token with contents read/write scope on the storage repositories",
        ),
    ] = None

    github_branch: Annotated[
        str,
        Field(
            description="Branch that all reads and writes target",
        ),
    ] = "main"

    photo_repo: Annotated[
        str,
        Field(
            description="Repository holding member profile photos (members/{id}/profile-photo.{ext})",
        ),
    ] = "user-data"

    files_repo: Annotated[
        str,
        Field(
            description="Repository holding project files (projects/{id}/{unique name})",
        ),
    ] = "project-files"

    files_token: Annotated[
        str | None,
        Field(
            description="Token for the project files repository. Default: same as github_token",
        ),
    ] = None

    request_timeout: Annotated[
        float,
        Field(
            description="Timeout in seconds for every call to the GitHub API",
            gt=0,
        ),
    ] = 20.0

    max_file_size: Annotated[
        int,
        Field(
            description="Maximum size in bytes of a single project file",
            gt=0,
        ),
    ] = MAX_FILE_BYTES

    photo_cache_ttl: Annotated[
        float,
        Field(
            description="Seconds a downloaded profile photo is served from memory",
            ge=0,
        ),
    ] = PHOTO_CACHE_TTL_SECONDS

    photo_cache_max_entries: Annotated[
        int | None,
        Field(
            description="Optional cap on the number of cached profile photos (least recently used are dropped)",
        ),
    ] = None

    @model_validator(mode="after")
    def set_files_token(self: Any) -> "Settings":
        if not self.files_token:
            self.files_token = self.github_token
        return self

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)


@functools.lru_cache()
def get_settings() -> Settings:
    # Read the env file location first, so the .env can live outside the working directory
    temp = Settings()
    load_dotenv(temp.env_file, override=False)
    return Settings()


def validate_settings():
    settings = get_settings()
    if not settings.github_owner:
        return "No github_owner configured, the content store cannot reach any repository."
    if not settings.github_token:
        return (
            "No github_token configured. Requests to the GitHub API will be anonymous, "
            "which only works for public repositories and will fail on every write."
        )


if __name__ == "__main__":
    # Echo the settings
    for k, v in get_settings().model_dump().items():
        if k.endswith("token") and v:
            v = "***"
        print(f"{ENV_PREFIX.upper()}{k.upper()}={v}")
