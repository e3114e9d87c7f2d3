# FILE: teletext/middleware/body_limit.py
"""
Request body cap for page input and AI requests

Typed input on POST /page/{id} and POST /ai is a few hundred bytes at most.
Anything declaring a Content-Length above BODY_SIZE_LIMIT_KB is refused with
413 BODY_TOO_LARGE before it reaches a route.
"""
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH")


def declared_length(request: Request) -> int:
    value = request.headers.get("content-length", "")
    return int(value) if value.isdigit() else 0


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Refuses oversized page input and AI request bodies"""

    def __init__(self, app, max_size: int):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next):
        if request.method in BODY_METHODS:
            length = declared_length(request)
            if length > self.max_size:
                logger.warning(f"Refused {length} byte body on {request.url.path} (limit {self.max_size})")
                return JSONResponse(
                    status_code=413,
                    content={
                        "success": False,
                        "error": f"Request body too large (limit {self.max_size // 1024} KB)",
                        "code": "BODY_TOO_LARGE",
                    },
                )

        return await call_next(request)
