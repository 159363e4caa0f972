"""
Exception taxonomy for the effects editor.

Every error carries the HTTP status the app shell answers with, so the
Flask layer can surface any of them as a rejected request.
"""


class EditorError(Exception):
    """Base exception for editor operations."""
    status_code = 400


class UnknownKindError(EditorError):
    """Raised when an effect kind is not registered in the catalog."""

    def __init__(self, kind):
        super().__init__(f"unknown effect kind: {kind!r}")
        self.kind = kind


class UnsupportedFormatError(EditorError):
    """Raised when an upload is not a recognized image encoding."""
    status_code = 415


class DecodeError(EditorError):
    """Raised when upload bytes cannot be decoded."""


class InvalidDimensionsError(EditorError):
    """Raised for degenerate image geometry."""


class EncodeError(EditorError):
    """Raised when the output encoder fails."""
    status_code = 500


class NotFoundError(EditorError):
    """Raised by strict pipelines when an effect id is unknown."""
    status_code = 404

    def __init__(self, effect_id):
        super().__init__(f"no effect with id {effect_id!r}")
        self.effect_id = effect_id


class SessionClosedError(EditorError):
    """Raised when an event reaches a session that was shut down."""
    status_code = 409


class ConfigError(EditorError):
    """Raised for invalid configuration values."""
    status_code = 500


class InvalidRequestError(EditorError):
    """Raised when a request to the app is missing or mistypes a field."""
