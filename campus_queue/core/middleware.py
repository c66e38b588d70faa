from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .observability import correlation_context


REQUEST_ID_HEADER = "x-request-id"
MAX_REQUEST_ID_LENGTH = 64


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach client details and a correlation id to every request."""

    async def dispatch(self, request: Request, call_next):
        request.state.ip = _client_ip(request)
        request.state.user_agent = request.headers.get("user-agent")
        incoming = (request.headers.get(REQUEST_ID_HEADER) or "")[:MAX_REQUEST_ID_LENGTH] or None
        with correlation_context(incoming) as correlation_id:
            response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = correlation_id
        return response
