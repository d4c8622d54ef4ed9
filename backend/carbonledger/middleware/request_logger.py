# Path: backend/carbonledger/middleware/request_logger.py

import time
import uuid
from typing import Callable
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from carbonledger.core.logging import log_api_request


def _request_user_id(request: Request):
    # Set by get_current_user once the bearer token resolves
    user = getattr(request.state, "user", None)
    return user.id if user is not None else None


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """Middleware for logging all HTTP requests"""

    async def dispatch(self, request: Request, call_next: Callable):
        # Generate unique request ID
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        # Record start time
        start_time = time.time()

        # Process the request
        try:
            response = await call_next(request)

            # Log the request
            log_api_request(
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                processing_time=time.time() - start_time,
                user_id=_request_user_id(request)
            )

            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as e:
            # Log the error
            log_api_request(
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                status_code=500,
                processing_time=time.time() - start_time,
                user_id=_request_user_id(request),
                error=str(e)
            )

            # Re-raise the exception
            raise
