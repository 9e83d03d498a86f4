"""API Endpoints for server information and configuration."""

from importlib.metadata import version

from fastapi import APIRouter
from pydantic import BaseModel, Field

from repostore.config import get_settings, validate_settings

app_info = APIRouter(tags=["informational"])


class ConfigResponse(BaseModel):
    """Response for the (non-secret) storage configuration."""

    github_owner: str | None = Field(None, description="Owner of the storage repositories.")
    photo_repo: str = Field(..., description="Repository holding member profile photos.")
    files_repo: str = Field(..., description="Repository holding project files.")
    branch: str = Field(..., description="Branch all content is read from and written to.")
    max_file_size: int = Field(..., description="Maximum size of a project file in bytes.")
    warnings: list[str] = Field(..., description="A list of configuration warnings.")
    api_version: str = Field(..., description="The version of the repostore API.")


@app_info.get("/config")
def get_config() -> ConfigResponse:
    """Get the storage configuration of this instance."""
    settings = get_settings()

    return ConfigResponse(
        github_owner=settings.github_owner,
        photo_repo=settings.photo_repo,
        files_repo=settings.files_repo,
        branch=settings.github_branch,
        max_file_size=settings.max_file_size,
        warnings=[w for w in [validate_settings()] if w],
        api_version=version("repostore"),
    )
