"""HTTP mapping for file action request errors."""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from ..domain.file_action_requests import (
    DecisionCommentRequiredError,
    DecisionPermissionDeniedError,
    DuplicateRequestError,
    FileActionRequestError,
    InvalidApproverError,
    NotRequestOwnerError,
    RequestNotDecidableError,
    RequestNotFoundError,
    TargetFileNotFoundError,
    TargetFolderNotFoundError,
)

logger = logging.getLogger(__name__)

# Checked in order; subclasses of RequestNotDecidableError map through their base
ERROR_STATUS_CODES = (
    (RequestNotFoundError, status.HTTP_404_NOT_FOUND),
    (TargetFileNotFoundError, status.HTTP_404_NOT_FOUND),
    (TargetFolderNotFoundError, status.HTTP_404_NOT_FOUND),
    (NotRequestOwnerError, status.HTTP_403_FORBIDDEN),
    (DecisionPermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (RequestNotDecidableError, status.HTTP_409_CONFLICT),
    (DuplicateRequestError, status.HTTP_409_CONFLICT),
    (InvalidApproverError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (DecisionCommentRequiredError, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def status_code_for(exc: FileActionRequestError) -> int:
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_400_BAD_REQUEST


async def file_action_request_exception_handler(
    request: Request,
    exc: FileActionRequestError,
) -> JSONResponse:
    """Render a precondition failure as {"error", "message", "details"}."""
    status_code = status_code_for(exc)
    logger.info(
        f"{request.method} {request.url.path} rejected: {exc.code}",
        extra={"status_code": status_code},
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())
