"""Unhandled error middleware — a JSON 500 from inside the middleware stack.

Learn: Starlette sends exception handlers registered for plain Exception
to ServerErrorMiddleware, which sits outside everything added with
add_middleware. Catching here instead, as the innermost middleware,
means an unexpected 500 still passes back through RequestId, security
headers and CORS like any other response.
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Turn unexpected exceptions into a bare {message} 500."""

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception("request.unhandled_error", error=type(e).__name__)
            return JSONResponse(status_code=500, content={"message": "Server error"})
