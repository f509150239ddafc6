"""FastAPI dependencies for the injected database and storage handles and parsed request bodies."""

from typing import Annotated, AsyncIterator

from fastapi import Depends, Request

from app.core.requests import ClassifiedRequest, ParsedBody, classify_upload_request, read_entity_body
from app.db.base import Database
from app.storage.base import StorageBackend


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_storage(request: Request) -> StorageBackend:
    return request.app.state.storage


async def get_entity_body(request: Request) -> AsyncIterator[ParsedBody]:
    """Parsed entity body; its file parts are closed once the request is done."""
    body = await read_entity_body(request)
    try:
        yield body
    finally:
        await body.close()


async def get_upload_request(request: Request) -> AsyncIterator[ClassifiedRequest]:
    classified = await classify_upload_request(
        request.headers.get("content-type", ""), await request.body()
    )
    try:
        yield classified
    finally:
        await classified.body.close()


DbDep = Annotated[Database, Depends(get_db)]
StorageDep = Annotated[StorageBackend, Depends(get_storage)]
EntityBodyDep = Annotated[ParsedBody, Depends(get_entity_body)]
UploadRequestDep = Annotated[ClassifiedRequest, Depends(get_upload_request)]
