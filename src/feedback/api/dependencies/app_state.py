"""Dependencies for objects created once per application."""

from typing import Annotated

from fastapi import Depends, Request

from src.feedback.core.config import Settings
from src.feedback.core.storage import BlobStore


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was built with."""
    return request.app.state.settings  # type: ignore[no-any-return]


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store  # type: ignore[no-any-return]


AppSettings = Annotated[Settings, Depends(get_app_settings)]
BlobStoreDep = Annotated[BlobStore, Depends(get_blob_store)]
