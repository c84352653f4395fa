"""Request metrics middleware.

Learn: Counts every finished request by path and status into the app's
BrokerMetrics: statuses below 400 go to api_http_request_total, the rest
to api_http_request_error_total.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        metrics = getattr(request.app.state, "metrics", None)
        if metrics is not None:
            metrics.observe_request(request.url.path, response.status_code)
        return response
