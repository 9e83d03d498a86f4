"""repostore API: member photos and project files, stored in GitHub repositories."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from repostore.api.info import app_info
from repostore.api.members import app_members
from repostore.api.project_files import app_project_files
from repostore.connections import content_stores
from repostore.objectstorage.errors import (
    Conflict,
    FileTooLarge,
    NotFound,
    TransportError,
    UnsupportedMimeType,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tests (or an embedding application) can provide their own stores
    if getattr(app.state, "stores", None) is not None:
        yield
        return
    logging.info("Starting content stores...")
    async with content_stores() as stores:
        app.state.stores = stores
        yield
        app.state.stores = None


app = FastAPI(
    title="repostore",
    description=__doc__ if __doc__ else "",
    openapi_tags=[
        dict(name="members", description="Endpoints to upload, serve, and delete member profile photos"),
        dict(name="project files", description="Endpoints to upload, replace, download, and delete project files"),
        dict(name="informational", description="Endpoints for server configuration"),
    ],
    lifespan=lifespan,
)
app.include_router(app_info)
app.include_router(app_members)
app.include_router(app_project_files)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.exception_handler(UnsupportedMimeType)
async def unsupported_mime_type_handler(request: Request, exc: UnsupportedMimeType):
    return JSONResponse(status_code=415, content={"message": str(exc), "allowed": list(exc.allowed)})


@app.exception_handler(FileTooLarge)
async def file_too_large_handler(request: Request, exc: FileTooLarge):
    return JSONResponse(status_code=413, content={"message": str(exc), "size": exc.size, "max_size": exc.max_size})


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"message": f"{exc.path} not found"})


@app.exception_handler(Conflict)
async def conflict_handler(request: Request, exc: Conflict):
    return JSONResponse(
        status_code=409,
        content={
            "message": "Someone else just changed this file. Reload and try again.",
            "detail": exc.message,
            "retryable": exc.retryable,
        },
    )


@app.exception_handler(TransportError)
async def transport_error_handler(request: Request, exc: TransportError):
    logging.error(f"Storage backend error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"message": "Storage backend error", "status": exc.status})


@app.exception_handler(ValueError)
async def value_error_exception_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=400,
        content={"message": str(exc)},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc) -> JSONResponse:
    return JSONResponse(
        status_code=422, content={"message": "There was an issue with the data you sent.", "fields_invalid": exc.errors()}
    )
