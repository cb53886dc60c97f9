"""FastAPI exception handlers producing the ErrorResponse envelope."""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pawfeed.errors.exceptions import AuthorizationError, PawFeedError
from pawfeed.models.common import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app."""

    @app.exception_handler(PawFeedError)
    async def pawfeed_error_handler(request: Request, exc: PawFeedError):
        trace_id = getattr(request.state, "trace_id", "unknown")
        if isinstance(exc, AuthorizationError):
            logger.warning(
                "action_denied",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "trace_id": trace_id,
                    "principal_id": getattr(request.state, "principal_id", None),
                    "reason": str(exc),
                },
            )
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
