from collections.abc import Callable
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from clip_api.constants import CORS_HEADERS


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """
    Open CORS policy: answers every preflight directly and stamps
    the CORS headers on every other response.
    """

    def __init__(self, app: Any, headers: dict[str, str] | None = None) -> None:
        super().__init__(app)
        self.headers = dict(headers or CORS_HEADERS)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=self.headers)

        response = await call_next(request)
        response.headers.update(self.headers)
        return response
