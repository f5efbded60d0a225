from typing import Any
from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from config import settings


def envelope(message: str, status_code: int = status.HTTP_200_OK, **data: Any) -> JSONResponse:
    """Wrap an outcome as {message, <key>: data} with the given status."""
    content = {"message": message}
    content.update(data)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))

def created(message: str, **data: Any) -> JSONResponse:
    return envelope(message, status.HTTP_201_CREATED, **data)

def modified(message: str, **data: Any) -> JSONResponse:
    """Answer for show/update, which legacy clients expect as 201."""
    code = status.HTTP_201_CREATED if settings.LEGACY_STATUS_CODES else status.HTTP_200_OK
    return envelope(message, code, **data)
