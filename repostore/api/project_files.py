"""API Endpoints for project files and their version history."""

import mimetypes
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, Query, Request, Response, UploadFile, status
from pydantic import BaseModel, Field

from repostore.api.caching import immutable_response, response_with_etag
from repostore.api.common import HTTPException_if_not_in_project, project_file_store
from repostore.models import ReplaceTarget, VersionRecord
from repostore.objectstorage.projectfiles import ProjectFileStore

app_project_files = APIRouter(prefix="/projects", tags=["project files"])


class UploadFileResponse(BaseModel):
    path: str = Field(description="Path of the file in the storage repository")
    sha: str = Field(description="Current version of the file, needed to replace or delete it")
    size: int = Field(description="Size of the uploaded content in bytes")
    mime_type: str
    replaced: bool = Field(description="Whether an existing file was updated in place")


def _file_headers(path: str, disposition: str) -> dict[str, str]:
    filename = path.rsplit("/", 1)[-1]
    return {"Content-Disposition": f'{disposition}; filename="{filename}"'}


def _media_type(path: str) -> str:
    return mimetypes.guess_type(path)[0] or "application/octet-stream"


@app_project_files.post("/{project_id}/files", status_code=status.HTTP_201_CREATED)
async def upload_file(
    project_id: Annotated[int, Path(ge=0, description="ID of the project")],
    file: Annotated[UploadFile, File(description="The file to upload")],
    existing_path: Annotated[str | None, Form(description="Path of the file to replace")] = None,
    existing_sha: Annotated[str | None, Form(description="Current sha of the file to replace")] = None,
    store: ProjectFileStore = Depends(project_file_store),
) -> UploadFileResponse:
    """
    Upload a new file to a project, or replace an existing one.

    To replace a file, give its current path and sha. If the sha is no longer current (someone else changed
    the file in the meantime), 409 is returned: reload the file and try again.
    """
    if (existing_path is None) != (existing_sha is None):
        raise HTTPException(422, "To replace a file, give both existing_path and existing_sha")
    replace = None
    if existing_path is not None and existing_sha is not None:
        HTTPException_if_not_in_project(project_id, existing_path)
        replace = ReplaceTarget(existing_path=existing_path, existing_sha=existing_sha)

    content = await file.read()
    mime_type = file.content_type or ""
    result = await store.upload(content, file.filename or "upload", mime_type, project_id, replace=replace)
    return UploadFileResponse(
        path=result.path, sha=result.sha, size=len(content), mime_type=mime_type, replaced=replace is not None
    )


@app_project_files.get("/{project_id}/files/{path:path}")
async def download_file(
    project_id: Annotated[int, Path(ge=0, description="ID of the project")],
    path: Annotated[str, Path(description="Path of the file in the storage repository")],
    store: ProjectFileStore = Depends(project_file_store),
):
    """Download the current version of a file."""
    HTTPException_if_not_in_project(project_id, path)
    content = await store.download(path)
    return Response(content=content, media_type=_media_type(path), headers=_file_headers(path, "inline"))


@app_project_files.delete("/{project_id}/files/{path:path}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(
    project_id: Annotated[int, Path(ge=0, description="ID of the project")],
    path: Annotated[str, Path(description="Path of the file in the storage repository")],
    sha: Annotated[str, Query(description="Current sha of the file")],
    store: ProjectFileStore = Depends(project_file_store),
):
    """Delete a file from the storage repository (best effort: failures are logged, not returned)."""
    HTTPException_if_not_in_project(project_id, path)
    await store.delete(path, sha)


@app_project_files.get("/{project_id}/history/{path:path}", response_model=list[VersionRecord])
async def file_history(
    request: Request,
    response: Response,
    project_id: Annotated[int, Path(ge=0, description="ID of the project")],
    path: Annotated[str, Path(description="Path of the file in the storage repository")],
    store: ProjectFileStore = Depends(project_file_store),
):
    """List the versions of a file, newest first (at most 50)."""
    HTTPException_if_not_in_project(project_id, path)
    history = await store.history(path)
    return response_with_etag(request, response, [record.model_dump(mode="json") for record in history])


@app_project_files.get("/{project_id}/versions/{version_id}/{path:path}")
async def download_file_version(
    project_id: Annotated[int, Path(ge=0, description="ID of the project")],
    version_id: Annotated[str, Path(description="Version of the file, as listed in its history")],
    path: Annotated[str, Path(description="Path of the file in the storage repository")],
    store: ProjectFileStore = Depends(project_file_store),
):
    """Download a file as it was at a specific version."""
    HTTPException_if_not_in_project(project_id, path)
    content = await store.download_at_version(path, version_id)
    return immutable_response(content, _media_type(path), _file_headers(path, "attachment"))
