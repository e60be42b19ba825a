from typing import Annotated

from fastapi import Depends, Request

from ..services.document_store import DocumentStore
from ..storage import LocalStorage


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_storage(request: Request) -> LocalStorage:
    return request.app.state.storage


Store = Annotated[DocumentStore, Depends(get_store)]
Storage = Annotated[LocalStorage, Depends(get_storage)]
