"""API Endpoints for member profile photos."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Path, Response, UploadFile, status
from pydantic import BaseModel, Field

from repostore.api.caching import REVALIDATE_CACHE_HEADER
from repostore.api.common import photo_store
from repostore.objectstorage.photos import ProfilePhotoStore

app_members = APIRouter(prefix="/members", tags=["members"])


class PhotoUploadResponse(BaseModel):
    url: str = Field(description="URL the new photo can be served from (unique for every upload)")


@app_members.put("/{member_id}/photo")
async def upload_photo(
    member_id: Annotated[int, Path(ge=0, description="ID of the member")],
    file: Annotated[UploadFile, File(description="A JPEG, PNG or WebP image")],
    store: ProfilePhotoStore = Depends(photo_store),
) -> PhotoUploadResponse:
    """
    Upload a new profile photo, replacing the current one (if any).

    Returns 409 if the photo was changed by someone else during the upload; reload and try again.
    """
    content = await file.read()
    url = await store.upload(member_id, content, file.content_type or "")
    return PhotoUploadResponse(url=url)


@app_members.get("/{member_id}/photo")
async def get_photo(
    member_id: Annotated[int, Path(ge=0, description="ID of the member")],
    store: ProfilePhotoStore = Depends(photo_store),
):
    """Get the profile photo of this member."""
    photo = await store.download(member_id)
    if photo is None:
        raise HTTPException(status_code=404, detail=f"Member {member_id} has no profile photo")
    return Response(
        content=photo.content, media_type=photo.mime_type, headers={"Cache-Control": REVALIDATE_CACHE_HEADER}
    )


@app_members.delete("/{member_id}/photo", status_code=status.HTTP_204_NO_CONTENT)
async def delete_photo(
    member_id: Annotated[int, Path(ge=0, description="ID of the member")],
    store: ProfilePhotoStore = Depends(photo_store),
):
    """Delete the profile photo of this member. Deleting a missing photo is not an error."""
    await store.delete(member_id)
