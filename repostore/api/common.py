"""Helper methods for the API."""

from fastapi import HTTPException, Request

from repostore.connections import ContentStores
from repostore.objectstorage.paths import project_prefix
from repostore.objectstorage.photos import ProfilePhotoStore
from repostore.objectstorage.projectfiles import ProjectFileStore


def content_stores(request: Request) -> ContentStores:
    stores = getattr(request.app.state, "stores", None)
    if stores is None:
        raise HTTPException(503, "Content stores not initialized")
    return stores


def photo_store(request: Request) -> ProfilePhotoStore:
    return content_stores(request).photos


def project_file_store(request: Request) -> ProjectFileStore:
    return content_stores(request).project_files


def HTTPException_if_not_in_project(project_id: int, path: str):
    """Only serve and change files that belong to the project in the URL"""
    if not path.startswith(project_prefix(project_id)) or ".." in path.split("/"):
        raise HTTPException(404, f"File {path} not found in project {project_id}")
