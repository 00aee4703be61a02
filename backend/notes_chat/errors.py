from __future__ import annotations


class NotesChatError(Exception):
    """Base class for errors raised by the notes service."""


class Unauthorized(NotesChatError):
    """No identity, or the bearer token could not be validated."""


class ValidationError(NotesChatError):
    pass


class NotFoundError(NotesChatError):
    pass


class AuthorizationError(NotesChatError):
    """The record exists but belongs to someone else."""


class ProviderError(NotesChatError):
    """The inference API failed or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NetworkError(NotesChatError):
    """Client-side transport failure talking to the chat endpoint."""
