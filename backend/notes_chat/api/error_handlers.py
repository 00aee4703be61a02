"""Map store and auth errors onto HTTP responses for the notes API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from notes_chat.errors import (
    AuthorizationError,
    NotesChatError,
    NotFoundError,
    Unauthorized,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    Unauthorized: status.HTTP_401_UNAUTHORIZED,
    ValidationError: 422,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
}


async def notes_error_handler(request: Request, exc: NotesChatError) -> JSONResponse:
    status_code = STATUS_BY_ERROR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Unhandled service error: %s", exc)
        return JSONResponse(status_code=status_code, content={"detail": "Internal error"})

    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=status_code, content={"detail": str(exc)}, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotesChatError, notes_error_handler)
