"""Exception handlers mapping collection errors to HTTP responses."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from starlette.responses import JSONResponse

from ...exceptions import CollectionValidationError, UnsupportedOperatorError

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Client input problem: 422 with every field error."""
    if not isinstance(exc, CollectionValidationError):
        raise exc
    return JSONResponse(status_code=422, content=exc.to_dict())


async def unsupported_operator_handler(request: Request, exc: Exception) -> JSONResponse:
    """A declared filter the backend cannot run: server-side misconfiguration."""
    if not isinstance(exc, UnsupportedOperatorError):
        raise exc
    logger.error("Collection misconfigured for %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content=exc.to_dict())


def install_exception_handlers(app: FastAPI) -> None:
    """Register the collection error handlers on *app*."""
    app.add_exception_handler(CollectionValidationError, validation_error_handler)
    app.add_exception_handler(UnsupportedOperatorError, unsupported_operator_handler)
