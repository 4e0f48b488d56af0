"""FastAPI exception handlers producing the standard ErrorResponse."""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from huellitas.errors.exceptions import HuellitasError, PushCapabilityError, RelayError
from huellitas.models.common import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app."""

    @app.exception_handler(HuellitasError)
    async def huellitas_error_handler(request: Request, exc: HuellitasError):
        trace_id = getattr(request.state, "trace_id", "unknown")
        if isinstance(exc, RelayError):
            logger.warning("Push relay failed on %s %s: %s", request.method, request.url.path, exc.message)
        elif isinstance(exc, PushCapabilityError):
            logger.info("Push capability unavailable (%s) on %s", exc.code, request.url.path)
        error_response = ErrorResponse(
            error=ErrorDetail(
                code=exc.code,
                message=exc.message,
                details=exc.details,
                trace_id=trace_id,
                timestamp=datetime.now(timezone.utc),
            ),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response.model_dump(mode="json", exclude_none=True),
        )
