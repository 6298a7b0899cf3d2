"""
Request-level errors and the single error-signaling path.

Every request-level failure is raised as a ``GeodictError`` through ``fail``;
the application's exception handler turns it into a response with
``render_error``. Per-item lookup failures use ``BackendItemFailure`` and are
absorbed by the batch adapters instead.
"""
from __future__ import annotations

import json
import re
from xml.sax.saxutils import escape
from typing import Optional, Tuple, Type

XML_MEDIA_TYPE = "application/xml"
JSON_MEDIA_TYPE = "application/json"
JSONP_MEDIA_TYPE = "application/javascript"
TEXT_MEDIA_TYPE = "text/plain"

# Dotted JavaScript identifier, e.g. "cb" or "jQuery.handlers.gotPlaces".
CALLBACK_PATTERN = re.compile(r"[A-Za-z_$][A-Za-z0-9_$.]*")


class GeodictError(Exception):
    """A failure that aborts the whole request."""

    code = 500

    def __init__(
        self,
        message: str,
        output_format: str = "xml",
        code: Optional[int] = None,
        callback: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.output_format = output_format
        self.callback = callback
        if code is not None:
            self.code = code


class UnsupportedOption(GeodictError):
    """The client asked for part of the emulated API that is not implemented."""


class MissingInput(GeodictError):
    """No document content, or an empty/unparseable batch."""


class BadPlaceType(GeodictError):
    """The text extractor produced a place kind with no API equivalent."""


class BackendUnavailable(GeodictError):
    """A lookup database could not be opened."""

    code = 503


class BackendItemFailure(Exception):
    """One batch item could not be resolved; never surfaces as a request error."""


def make_json(payload, callback: Optional[str] = None) -> str:
    """Serialize ``payload`` compactly, wrapped as ``callback(...);`` for JSONP."""
    content = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    if callback:
        return f"{callback}({content});"
    return content


def fail(
    message: str,
    output_format: str = "xml",
    code: Optional[int] = None,
    callback: Optional[str] = None,
    error_cls: Type[GeodictError] = GeodictError,
) -> None:
    """Abort the request with ``message`` rendered in ``output_format``.

    ``code`` defaults to the error class's own status (500 unless overridden).
    """
    raise error_cls(message, output_format=output_format, code=code, callback=callback)


def render_error(error: GeodictError) -> Tuple[int, str, str]:
    """Return ``(status_code, body, media_type)`` for a request-level error."""
    code = error.code
    if error.output_format == "xml":
        content = f'<?xml version="1.0" encoding="utf-8"?><error>{escape(error.message)}</error>'
        return code, content, XML_MEDIA_TYPE
    if error.output_format == "json":
        # Script-tag clients can't see the status, so JSONP errors go out as 200.
        if error.callback:
            code = 200
            return code, make_json({"error": error.message}, error.callback), JSONP_MEDIA_TYPE
        return code, make_json({"error": error.message}), JSON_MEDIA_TYPE
    return code, error.message, TEXT_MEDIA_TYPE


def check_callback(callback: Optional[str], output_format: str = "json") -> None:
    """Reject a JSONP callback that is not a plain (dotted) identifier.

    The bad name is never echoed back as a callback, so the error goes out
    unwrapped.
    """
    if callback and not CALLBACK_PATTERN.fullmatch(callback):
        fail(f'Unsupported callback: "{callback}"', output_format, 400, None, UnsupportedOption)
