"""flatdrive API: folders and files on top of a flat record store."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from flatdrive.api.files import app_files
from flatdrive.api.info import app_info
from flatdrive.connections import drive_connections


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.info("Starting record store and object storage connections...")
    async with drive_connections():
        yield


app = FastAPI(
    title="flatdrive",
    description=__doc__ if __doc__ else "",
    openapi_tags=[
        dict(name="files", description="Endpoints to list, upload, download and delete files and to create folders"),
        dict(name="informational", description="Endpoints for server configuration"),
    ],
    lifespan=lifespan,
)
app.include_router(app_info)
app.include_router(app_files)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.exception_handler(ValueError)
async def value_error_exception_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=400,
        content={"message": str(exc)},
    )


@app.exception_handler(ConnectionError)
async def connection_error_exception_handler(request: Request, exc: ConnectionError):
    logging.error(f"Backend not available: {exc}")
    return JSONResponse(
        status_code=503,
        content={"message": str(exc)},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc) -> JSONResponse:
    return JSONResponse(
        status_code=422, content={"message": "There was an issue with the data you sent.", "fields_invalid": exc.errors()}
    )
