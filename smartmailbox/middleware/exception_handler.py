"""Exception handler for structured error responses."""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from ..exceptions import MailboxException

logger = logging.getLogger(__name__)


async def mailbox_exception_handler(request: Request, exc: MailboxException) -> JSONResponse:
    """
    Render a MailboxException as ``{"error", "message", "details"}``.

    Server-side failures (5xx) are logged at error level, caller mistakes at
    warning level.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"MailboxException: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )
